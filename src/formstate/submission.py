"""
Submission lifecycle.

    IDLE --submit()--> SUBMITTING --(handler settled | invalid)--> IDLE

A submit touches every field (without waiting for it), validates, applies the
resulting errors to every field, and calls the form's submit handler only if
no errors remain. A submit() that arrives while another is in flight does
nothing; it neither queues nor cancels.
"""
import asyncio
from enum import Enum
import inspect
import logging
from typing import Any, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from formstate.form import Form

logger = logging.getLogger(__name__)


class SubmissionPhase(Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"


def suppress_default(event: Any) -> None:
    """Cancel the default action of a UI-event-like argument, if it has one."""
    if event is None:
        return
    for name in ('prevent_default', 'preventDefault'):
        prevent = getattr(event, name, None)
        if callable(prevent):
            prevent()
            return


class SubmissionController:
    """Guards and sequences submit attempts for one Form.

    Lifecycle ownership:
    - Form: creates one controller and routes submit()/submit_form() here
    - Controller: owns submit_count and the IDLE/SUBMITTING phase
    """

    def __init__(self, form: 'Form'):
        self._form = form
        self.phase = SubmissionPhase.IDLE
        self.submit_count = 0
        # Strong refs to unawaited touch completions until they settle
        self._background: Set[asyncio.Future] = set()

    @property
    def is_submitting(self) -> bool:
        return self.phase is SubmissionPhase.SUBMITTING

    def _set_phase(self, phase: SubmissionPhase) -> None:
        logger.debug(f"Submission phase: {self.phase.value} -> {phase.value}")
        self.phase = phase
        self._form._publish()

    def _touch_all(self) -> None:
        # Flags land now; outstanding owner hooks are not waited for
        touched = {path: True for path in self._form.registry.paths()}
        completion = self._form.set_touched(touched)
        if not completion.done:
            self._background.add(completion.future)
            completion.future.add_done_callback(self._background.discard)

    async def submit(self, event: Any = None) -> None:
        """Run one submission, or do nothing if one is already running.

        The phase returns to IDLE even when validation or the submit handler
        raises; the exception then propagates to the caller.
        """
        suppress_default(event)

        if self.is_submitting:
            logger.debug("Ignoring submit: a submission is already in progress")
            return

        self.submit_count += 1
        self._set_phase(SubmissionPhase.SUBMITTING)
        self._touch_all()

        try:
            await self._form.validate_form(should_touch=True)

            if not self._form.get_errors():
                result = self._form.config.handle_submit(
                    self._form.get_values(), self._form.actions
                )
                if inspect.isawaitable(result):
                    await result
            else:
                logger.debug("Submit handler skipped: form has validation errors")
        finally:
            self._set_phase(SubmissionPhase.IDLE)
