"""
FieldRegistry: the set of currently mounted fields, keyed by dotted path.

The registry is the single source of truth for every field's value, touched
flag and error. Field owners register on mount and unregister by handle on
teardown; the form mutates field state only through the effectors
defined here (set_value, set_touched, set_error, reset).

Owners that keep their own local copy of a field's state can pass
FieldEffectors at registration. Those hooks are invoked after the registry
has applied a change, so the owner can mirror it.
"""
from dataclasses import dataclass
import asyncio
import copy
import inspect
import logging
import uuid
from typing import Any, Callable, Dict, Iterator, List, Optional

from formstate.completion import Completion, run_steps
from formstate.exceptions import FieldNotFoundError
from formstate.paths import MISSING, fold_paths, get_path, set_path, strict_equal, unset_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldEffectors:
    """Owner-side hooks, each called as ``hook(field)`` after the change lands.

    A hook may return an awaitable; the effector waits for it before it
    reports completion.
    """
    on_value: Optional[Callable[['Field'], Any]] = None
    on_touched: Optional[Callable[['Field'], Any]] = None
    on_error: Optional[Callable[['Field'], Any]] = None
    on_reset: Optional[Callable[['Field'], Any]] = None


@dataclass(eq=False)
class Field:
    """Authoritative record of one tracked input."""
    path: str
    handle: str
    value: Any
    touched: bool
    error: Any
    initial_value: Any
    initial_touched: bool = False
    initial_error: Any = None
    validator: Optional[Callable[[Any], Any]] = None
    effectors: Optional[FieldEffectors] = None


class FieldRegistry:
    """Mounted fields keyed by path, plus the InitialValues baseline.

    Invariant: at most one live Field per path. Iteration follows registration
    order; re-registering an occupied path keeps that path's original slot.

    Thread safety: Not thread-safe (single writer, expected on the event loop thread).
    """

    def __init__(self, defaults: Optional[Dict[str, Any]] = None):
        """
        Args:
            defaults: Nested tree consulted for a field's initial value when the
                      owner registers without one.
        """
        self._defaults: Dict[str, Any] = defaults or {}
        self._fields: Dict[str, Field] = {}
        self._initial_values: Dict[str, Any] = {}

        # Callbacks receive (reason: str, path: str) after every mutation
        self._on_change_callbacks: List[Callable[[str, str], None]] = []

    # ==================== CHANGE CALLBACKS ====================

    def add_change_callback(self, callback: Callable[[str, str], None]) -> None:
        """Subscribe to registry mutations."""
        if callback not in self._on_change_callbacks:
            self._on_change_callbacks.append(callback)

    def remove_change_callback(self, callback: Callable[[str, str], None]) -> None:
        """Unsubscribe from registry mutations."""
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _fire_change_callbacks(self, reason: str, path: str) -> None:
        for callback in self._on_change_callbacks:
            try:
                callback(reason, path)
            except Exception as e:
                logger.warning(f"Error in change callback ({reason} {path}): {e}")

    # ==================== REGISTRATION ====================

    def register(
        self,
        path: str,
        initial_value: Any = MISSING,
        initial_touched: bool = False,
        initial_error: Any = None,
        validator: Optional[Callable[[Any], Any]] = None,
        effectors: Optional[FieldEffectors] = None,
        handle: Optional[str] = None,
    ) -> str:
        """Insert or replace the field at ``path`` and record its baseline.

        Args:
            path: Dotted path of the field inside the value tree.
            initial_value: Starting value. Omitted means "look it up in defaults".
            initial_touched: Starting touched flag.
            initial_error: Starting error (None = no error).
            validator: Optional ``validator(value) -> error or None``, sync or awaitable.
            effectors: Optional owner-side hooks.
            handle: Identity for later unregistration. Generated when omitted.

        Returns:
            The handle to pass to unregister().
        """
        if initial_value is MISSING:
            initial_value = get_path(self._defaults, path, None)
        if handle is None:
            handle = uuid.uuid4().hex

        if path in self._fields:
            logger.warning(f"Overwriting existing field at path: {path}")

        self._fields[path] = Field(
            path=path,
            handle=handle,
            value=initial_value,
            touched=initial_touched,
            error=initial_error,
            initial_value=initial_value,
            initial_touched=initial_touched,
            initial_error=initial_error,
            validator=validator,
            effectors=effectors,
        )
        set_path(self._initial_values, path, copy.deepcopy(initial_value))
        logger.debug(f"Registered field: path={path}, handle={handle}")

        self._fire_change_callbacks('register', path)
        return handle

    def unregister(self, handle: str) -> bool:
        """Remove the field owning ``handle`` and prune its baseline.

        A handle that no longer owns any path (the path was re-registered by a
        newer owner, or it was already removed) is ignored.

        Returns:
            True if a field was removed.
        """
        field = self.find_by_handle(handle)
        if field is None:
            logger.debug(f"Ignoring unregister for unknown handle: {handle}")
            return False

        del self._fields[field.path]
        unset_path(self._initial_values, field.path)
        logger.debug(f"Unregistered field: path={field.path}, handle={handle}")

        self._fire_change_callbacks('unregister', field.path)
        return True

    # ==================== LOOKUP ====================

    def find_by_handle(self, handle: str) -> Optional[Field]:
        for field in self._fields.values():
            if field.handle == handle:
                return field
        return None

    def get(self, path: str) -> Optional[Field]:
        return self._fields.get(path)

    def require(self, path: str) -> Field:
        """Get the field at ``path`` or raise FieldNotFoundError."""
        field = self._fields.get(path)
        if field is None:
            raise FieldNotFoundError(path)
        return field

    def fields(self) -> List[Field]:
        """Snapshot of live fields in registry order."""
        return list(self._fields.values())

    def paths(self) -> List[str]:
        return list(self._fields.keys())

    def __contains__(self, path: str) -> bool:
        return path in self._fields

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields())

    def __len__(self) -> int:
        return len(self._fields)

    # ==================== AGGREGATION ====================

    def get_values(self) -> Dict[str, Any]:
        return fold_paths((f.path, f.value) for f in self._fields.values())

    def get_touched(self) -> Dict[str, Any]:
        return fold_paths((f.path, f.touched) for f in self._fields.values())

    def get_errors(self) -> Dict[str, Any]:
        """Nested error tree. Paths whose error is None are absent, not None."""
        return fold_paths(
            (f.path, f.error) for f in self._fields.values() if f.error is not None
        )

    @property
    def initial_values(self) -> Dict[str, Any]:
        """Copy of the InitialValues baseline used for dirty checks."""
        return copy.deepcopy(self._initial_values)

    def is_dirty(self) -> bool:
        return not strict_equal(self.get_values(), self._initial_values)

    # ==================== EFFECTORS ====================
    # Each effector applies its change immediately and returns a Completion
    # covering whatever is still outstanding (async hooks, async validation).

    def _live(self, path: str, effector: str) -> Optional[Field]:
        # The field may have unmounted before a continuation got to run
        field = self._fields.get(path)
        if field is None:
            logger.debug(f"{effector}({path!r}) skipped: field is no longer registered")
        return field

    @staticmethod
    def _hook(field: Field, name: str) -> Callable[[], Any]:
        hook = getattr(field.effectors, name, None) if field.effectors is not None else None
        return (lambda: hook(field)) if hook is not None else (lambda: None)

    def validate_field(self, path: str) -> Completion:
        """Run the field's own validator against its current value and store the result."""
        field = self._live(path, 'validate_field')
        if field is None:
            return Completion()
        error = field.validator(field.value) if callable(field.validator) else None
        if inspect.isawaitable(error):
            return Completion(asyncio.ensure_future(self._store_async_error(path, error)))
        return self.set_error(path, error)

    async def _store_async_error(self, path: str, pending: Any) -> None:
        await self.set_error(path, await pending)

    def set_value(self, path: str, value: Any, should_validate: bool = False) -> Completion:
        field = self._live(path, 'set_value')
        if field is None:
            return Completion()
        field.value = value
        self._fire_change_callbacks('value', path)
        steps = [self._hook(field, 'on_value')]
        if should_validate:
            steps.append(lambda: self.validate_field(path))
        return run_steps(steps)

    def set_touched(self, path: str, touched: bool) -> Completion:
        field = self._live(path, 'set_touched')
        if field is None:
            return Completion()
        field.touched = touched
        self._fire_change_callbacks('touched', path)
        return run_steps([self._hook(field, 'on_touched')])

    def set_error(self, path: str, error: Any, should_touch: bool = False) -> Completion:
        """Overwrite the field's error. ``should_touch`` also marks it touched."""
        field = self._live(path, 'set_error')
        if field is None:
            return Completion()
        field.error = error
        if should_touch:
            field.touched = True
        self._fire_change_callbacks('error', path)
        return run_steps([self._hook(field, 'on_error')])

    def reset(self, path: str, value: Any = MISSING) -> Completion:
        """Restore the field to its initial state.

        An explicit ``value`` becomes the field's new initial value and
        replaces its InitialValues baseline.
        """
        field = self._live(path, 'reset')
        if field is None:
            return Completion()
        if value is not MISSING:
            field.initial_value = value
            set_path(self._initial_values, path, copy.deepcopy(value))
        field.value = copy.deepcopy(field.initial_value)
        field.touched = field.initial_touched
        field.error = field.initial_error
        self._fire_change_callbacks('reset', path)
        return run_steps([self._hook(field, 'on_reset')])
