"""
Form: owner of one FieldRegistry and everything that acts on it.

The Form wires the registry, the validation orchestrator and the submission
controller together, exposes the actions bundle, and publishes a fresh
FormState to its listeners after every mutation. Publishing is explicit:
listeners receive the snapshot as an argument and nothing is broadcast
through ambient context.
"""
import asyncio
from dataclasses import dataclass, replace
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from formstate.completion import Completion
from formstate.config import FormConfig
from formstate.field_registry import FieldEffectors, FieldRegistry
from formstate.paths import MISSING, get_path
from formstate.snapshot_model import FormState, build_form_state
from formstate.submission import SubmissionController, suppress_default
from formstate.token_cache import SingleValueTokenCache
from formstate.validation import ErrorTree, ValidationOrchestrator, is_pending

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormActions:
    """The capabilities handed to the submit handler and to external callers."""
    set_values: Callable[..., Completion]
    set_field_value: Callable[..., Completion]
    set_errors: Callable[..., Completion]
    set_field_error: Callable[..., Completion]
    set_touched: Callable[..., Completion]
    set_field_touched: Callable[..., Completion]
    set_status: Callable[..., Completion]
    reset_form: Callable[..., Completion]
    submit_form: Callable[..., Completion]

    def as_dict(self) -> Dict[str, Callable[..., Any]]:
        return {
            'set_values': self.set_values,
            'set_field_value': self.set_field_value,
            'set_errors': self.set_errors,
            'set_field_error': self.set_field_error,
            'set_touched': self.set_touched,
            'set_field_touched': self.set_field_touched,
            'set_status': self.set_status,
            'reset_form': self.reset_form,
            'submit_form': self.submit_form,
        }


class Form:
    """
    Form-state orchestration for a dynamic set of registered fields.

    Core attributes:
    - config: FormConfig the form was built with
    - registry: FieldRegistry, the only mutable field state
    - validation: ValidationOrchestrator over registry + config.validate
    - submission: SubmissionController (submit_count, IDLE/SUBMITTING)
    - status: free-form value set by set_status()
    - is_validating: True from run_validations() until errors are applied

    Everything else (values, touched, errors, is_dirty, is_valid) is derived
    on demand; see the ``state`` property.
    """

    def __init__(self, config: Optional[FormConfig] = None, **overrides: Any):
        """
        Args:
            config: Base options. Defaults to FormConfig().
            **overrides: Individual FormConfig fields replacing those in ``config``.
        """
        base = config if config is not None else FormConfig()
        self.config = replace(base, **overrides) if overrides else base

        self.registry = FieldRegistry(defaults=self.config.initial_values)
        self.validation = ValidationOrchestrator(self.registry, self.config.validate)
        self.submission = SubmissionController(self)

        self.status: Any = None
        self.is_validating = False

        self._token = 0
        self._state_cache: SingleValueTokenCache[FormState] = SingleValueTokenCache(
            lambda: self._token
        )
        self._listeners: List[Callable[[FormState], None]] = []
        self.registry.add_change_callback(self._on_registry_change)

        self.actions = FormActions(
            set_values=self.set_values,
            set_field_value=self.set_field_value,
            set_errors=self.set_errors,
            set_field_error=self.set_field_error,
            set_touched=self.set_touched,
            set_field_touched=self.set_field_touched,
            set_status=self.set_status,
            reset_form=self.reset_form,
            submit_form=self.submit_form,
        )

    # ==================== PUBLICATION ====================

    def subscribe(self, listener: Callable[[FormState], None]) -> None:
        """Receive a FormState after every mutation."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[FormState], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_token(self) -> int:
        """Mutation counter; changes whenever the published state may differ."""
        return self._token

    def _on_registry_change(self, reason: str, path: str) -> None:
        self._publish()

    def _publish(self) -> None:
        self._token += 1
        if not self._listeners:
            return
        state = self.state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning(f"Error in form state listener: {e}")

    @property
    def state(self) -> FormState:
        return self._state_cache.get_or_compute(
            lambda: build_form_state(
                self.registry,
                status=self.status,
                submit_count=self.submission.submit_count,
                is_submitting=self.submission.is_submitting,
                is_validating=self.is_validating,
            )
        )

    def binding_context(self) -> Dict[str, Any]:
        """Everything a view-binding layer needs, as one plain dict."""
        context: Dict[str, Any] = {}
        context.update(self.state.to_dict())
        context.update(self.actions.as_dict())
        context.update(self.config.binding_flags())
        context.update(
            register_field=self.register_field,
            unregister_field=self.unregister_field,
            validate_form=self.config.validate,
        )
        return context

    # ==================== REGISTRATION ====================

    def register_field(
        self,
        path: str,
        initial_value: Any = MISSING,
        initial_touched: bool = False,
        initial_error: Any = None,
        validator: Optional[Callable[[Any], Any]] = None,
        effectors: Optional[FieldEffectors] = None,
        handle: Optional[str] = None,
    ) -> str:
        return self.registry.register(
            path,
            initial_value=initial_value,
            initial_touched=initial_touched,
            initial_error=initial_error,
            validator=validator,
            effectors=effectors,
            handle=handle,
        )

    def unregister_field(self, handle: str) -> bool:
        return self.registry.unregister(handle)

    # ==================== AGGREGATES ====================

    def get_values(self) -> Dict[str, Any]:
        return self.registry.get_values()

    def get_touched(self) -> Dict[str, Any]:
        return self.registry.get_touched()

    def get_errors(self) -> Dict[str, Any]:
        return self.registry.get_errors()

    # ==================== BULK + SINGLE-FIELD SETTERS ====================
    # Every setter applies its change when called. The returned Completion
    # settles once any asynchronous hooks or validators behind it have run.

    def set_values(
        self, values: Dict[str, Any], merge: bool = True, should_validate: bool = False
    ) -> Completion:
        """Push values to every field.

        With ``merge`` a field is skipped when ``values`` has nothing at its
        path; without it, such fields are set to None.
        """
        issued = []
        for path in self.registry.paths():
            value = get_path(values, path)
            if not merge or value is not MISSING:
                if value is MISSING:
                    value = None
                issued.append(self.registry.set_value(path, value, should_validate))
        return Completion.join(issued)

    def set_field_value(
        self, path: str, value: Any, should_validate: bool = False
    ) -> Completion:
        """Raises FieldNotFoundError if no field is registered at ``path``."""
        self.registry.require(path)
        return self.registry.set_value(path, value, should_validate)

    def set_errors(
        self, errors: Optional[ErrorTree], merge: bool = False, should_touch: bool = False
    ) -> Completion:
        """Push errors to every field, a missing path meaning None.

        With ``merge`` only fields whose incoming error is None are written.
        """
        errors = errors or {}
        issued = []
        for path in self.registry.paths():
            error = get_path(errors, path, None)
            if not merge or error is None:
                issued.append(self.registry.set_error(path, error, should_touch))
        return Completion.join(issued)

    def set_field_error(
        self, path: str, error: Any, should_touch: bool = False
    ) -> Completion:
        self.registry.require(path)
        return self.registry.set_error(path, error, should_touch)

    def set_touched(self, touched: Dict[str, Any]) -> Completion:
        """Push touched flags to every field, a missing path meaning False."""
        return Completion.join([
            self.registry.set_touched(path, get_path(touched, path, False))
            for path in self.registry.paths()
        ])

    def set_field_touched(self, path: str, touched: bool) -> Completion:
        self.registry.require(path)
        return self.registry.set_touched(path, touched)

    def set_status(self, status: Any) -> Completion:
        self.status = status
        self._publish()
        return Completion()

    def reset_form(self, values: Optional[Dict[str, Any]] = None) -> Completion:
        """Reset every field, to ``values`` at its path when given, else to its own initial value."""
        values = values or {}
        return Completion.join([
            self.registry.reset(path, get_path(values, path))
            for path in self.registry.paths()
        ])

    # ==================== VALIDATION + SUBMISSION ====================

    def _set_validating(self, is_validating: bool) -> None:
        if self.is_validating != is_validating:
            self.is_validating = is_validating
            self._publish()

    def run_validations(self) -> Union[ErrorTree, 'asyncio.Task[ErrorTree]']:
        """Start a validation pass; see ValidationOrchestrator.run_validations.

        Marks the form as validating. Whoever consumes the result is
        responsible for clearing it (validate_form() does).
        """
        self._set_validating(True)
        return self.validation.run_validations()

    async def validate_form(self, should_touch: bool = False) -> ErrorTree:
        """Validate, apply the result to every field, and return the error tree.

        ``is_validating`` is cleared even when a validator raises.
        """
        try:
            result = self.run_validations()
            errors = await result if is_pending(result) else result
            await self.set_errors(errors, merge=False, should_touch=should_touch)
        finally:
            self._set_validating(False)
        return self.get_errors()

    def submit_form(self, event: Any = None) -> Completion:
        """Start a submission on the running loop.

        The event's default action is suppressed immediately. Awaiting the
        returned Completion re-raises anything the submission raised.
        """
        suppress_default(event)
        return Completion(asyncio.ensure_future(self.submission.submit()))

    submit = submit_form
