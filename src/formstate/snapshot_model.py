"""
FormState: the externally visible, derived state of a form.

Nothing here is stored independently. A FormState is rebuilt from the
FieldRegistry and the submission counters whenever something changes, and
is immutable once built so listeners can hold on to it safely.
"""

from dataclasses import dataclass
from typing import Any, Dict

from formstate.field_registry import FieldRegistry
from formstate.paths import strict_equal


@dataclass(frozen=True)
class FormState:
    """Immutable snapshot of a form at one mutation token."""
    values: Dict[str, Any]
    touched: Dict[str, Any]
    errors: Dict[str, Any]
    status: Any
    submit_count: int
    is_submitting: bool
    is_validating: bool
    is_dirty: bool
    is_valid: bool

    def to_dict(self) -> Dict[str, Any]:
        """Export to a plain dict."""
        return {
            'values': self.values,
            'touched': self.touched,
            'errors': self.errors,
            'status': self.status,
            'submit_count': self.submit_count,
            'is_submitting': self.is_submitting,
            'is_validating': self.is_validating,
            'is_dirty': self.is_dirty,
            'is_valid': self.is_valid,
        }


def build_form_state(
    registry: FieldRegistry,
    *,
    status: Any = None,
    submit_count: int = 0,
    is_submitting: bool = False,
    is_validating: bool = False,
) -> FormState:
    """Derive a FormState from the registry.

    is_dirty compares the aggregated values against the InitialValues
    baseline; is_valid means the error tree has no entries.
    """
    values = registry.get_values()
    errors = registry.get_errors()
    return FormState(
        values=values,
        touched=registry.get_touched(),
        errors=errors,
        status=status,
        submit_count=submit_count,
        is_submitting=is_submitting,
        is_validating=is_validating,
        is_dirty=not strict_equal(values, registry.initial_values),
        is_valid=len(errors) == 0,
    )
