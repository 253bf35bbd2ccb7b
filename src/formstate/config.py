"""
Construction options for a Form.

Only ``handle_submit`` and ``validate`` are consumed by the engine itself.
The remaining flags are passed through verbatim to the binding layer, which
decides when to validate or touch a field in response to user input.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional


def noop(*args, **kwargs) -> None:
    return None


@dataclass
class FormConfig:
    """Options recognised when a Form is constructed.

    Attributes:
        validate_on_change: Binding layer validates a field when its value changes.
        validate_on_blur: Binding layer validates a field when it loses focus.
        validate_on_mount: Binding layer validates a field right after it registers.
        touch_on_change: Binding layer marks a field touched when its value changes.
        touch_on_blur: Binding layer marks a field touched when it loses focus.
        should_unregister: Field owners tear down their registration on disappearance.
        handle_submit: Called as ``handle_submit(values, actions)`` after a valid submit.
            May return an awaitable.
        validate: Optional whole-form validator ``validate(values) -> error tree``.
            May return an awaitable.
        initial_values: Seed used when a field registers without an explicit initial value.
    """
    validate_on_change: bool = False
    validate_on_blur: bool = True
    validate_on_mount: bool = False
    touch_on_change: bool = True
    touch_on_blur: bool = True
    should_unregister: bool = True
    handle_submit: Callable[..., Any] = noop
    validate: Optional[Callable[[Dict[str, Any]], Any]] = None
    initial_values: Dict[str, Any] = field(default_factory=dict)

    def binding_flags(self) -> Dict[str, Any]:
        """Flags handed to the binding layer untouched."""
        return {
            'validate_on_change': self.validate_on_change,
            'validate_on_blur': self.validate_on_blur,
            'validate_on_mount': self.validate_on_mount,
            'touch_on_change': self.touch_on_change,
            'touch_on_blur': self.touch_on_blur,
            'should_unregister': self.should_unregister,
            'initial_values': self.initial_values,
        }
