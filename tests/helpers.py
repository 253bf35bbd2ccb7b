"""Validators and handlers shared by the tests."""
import asyncio
import inspect


def required(value):
    """Synchronous validator: non-empty."""
    return None if value else "required"


async def allow_listed(value):
    """Asynchronous validator that always passes after yielding once."""
    await asyncio.sleep(0)
    return None


class FakeEvent:
    """UI-event-like object with a cancellable default action."""

    def __init__(self):
        self.default_prevented = False

    def prevent_default(self):
        self.default_prevented = True


def run(fn, *args, **kwargs):
    """Call ``fn`` on a fresh event loop and wait for whatever it returns."""
    async def main():
        result = fn(*args, **kwargs)
        if inspect.isawaitable(result):
            return await result
        return result
    return asyncio.run(main())
