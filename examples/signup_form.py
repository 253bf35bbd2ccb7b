"""
Signup form wired to a fake username allow-list.

Run with: python examples/signup_form.py
"""

import asyncio
import logging

from formstate import Form

logger = logging.getLogger(__name__)

TAKEN_USERNAMES = {"ann", "bob"}


def required(value):
    return None if value else "required"


async def username_available(value):
    await asyncio.sleep(0.05)  # stands in for a network lookup
    return "taken" if value in TAKEN_USERNAMES else None


def passwords_match(values):
    if values.get("password") != values.get("confirm"):
        return {"confirm": "passwords do not match"}
    return {}


async def handle_submit(values, actions):
    logger.info(f"Submitting {values}")
    await actions.set_status("sent")


async def main():
    form = Form(handle_submit=handle_submit, validate=passwords_match)
    form.subscribe(lambda state: logger.debug(f"state: {state.to_dict()}"))

    form.register_field("username", "ann", validator=username_available)
    form.register_field("email", "", validator=required)
    form.register_field("password", "secret")
    form.register_field("confirm", "secrte")

    await form.submit()
    logger.info(f"First attempt errors: {form.get_errors()}")

    await form.set_values({"username": "cat", "email": "cat@example.com", "confirm": "secret"})
    await form.submit()
    logger.info(f"Second attempt status={form.state.status!r} submits={form.state.submit_count}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
