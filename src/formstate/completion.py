"""
Completion signals for effectors and bulk setters.

Every state change is applied at call time. What can still be outstanding
afterwards (an asynchronous owner hook, an asynchronous field validator) is
scheduled on the running loop, and the caller gets a Completion it may await
or ignore. A Completion with nothing outstanding needs no event loop.
"""
import asyncio
import inspect
from typing import Any, Callable, Iterable, Optional, Sequence


class Completion:
    """Awaitable that settles once the work behind one call has finished."""

    def __init__(self, future: Optional['asyncio.Future[Any]'] = None):
        self.future = future

    @property
    def done(self) -> bool:
        return self.future is None or self.future.done()

    def __await__(self):
        if self.future is not None:
            yield from self.future.__await__()

    def __repr__(self) -> str:
        return f"Completion(done={self.done})"

    @classmethod
    def join(cls, completions: Iterable['Completion']) -> 'Completion':
        """Barrier over several completions, in issue order."""
        pending = [c.future for c in completions if not c.done]
        if not pending:
            return cls()
        return cls(asyncio.gather(*pending))


def is_outstanding(result: Any) -> bool:
    """True if ``result`` still has work to wait for."""
    if isinstance(result, Completion):
        return not result.done
    return inspect.isawaitable(result)


def run_steps(steps: Sequence[Callable[[], Any]]) -> Completion:
    """Run ``steps`` in order.

    Steps run inline until one returns outstanding work; that work and the
    remaining steps continue in a task on the running loop.
    """
    for index, step in enumerate(steps):
        result = step()
        if is_outstanding(result):
            return Completion(asyncio.ensure_future(_finish(result, steps[index + 1:])))
    return Completion()


async def _finish(pending: Any, steps: Sequence[Callable[[], Any]]) -> None:
    await pending
    for step in steps:
        result = step()
        if is_outstanding(result):
            await result
