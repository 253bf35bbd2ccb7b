"""
Form-state orchestration engine.

Tracks a dynamic set of independently registering fields, aggregates their
values, touched flags and errors into nested trees, merges field-level and
form-level validators (sync or async), and drives a guarded submission
lifecycle.

Quick Start:
    >>> import asyncio
    >>> from formstate import Form
    >>>
    >>> async def main():
    ...     form = Form(handle_submit=lambda values, actions: print(values))
    ...     form.register_field("email", "", validator=lambda v: None if v else "required")
    ...     await form.set_field_value("email", "ann@example.com")
    ...     await form.submit()
    ...     return form.state
    >>>
    >>> asyncio.run(main()).submit_count
    {'email': 'ann@example.com'}
    1

Architecture:
    FieldRegistry (paths -> Field records, InitialValues baseline)
        -> ValidationOrchestrator (merged error tree, sync or pending)
        -> SubmissionController (touch-all, validate, apply, handle_submit)
        -> FormState (derived snapshot published to listeners)

Modules:
    - paths: dotted-path get/set/unset on nested trees
    - completion: awaitable returned by setters and effectors
    - field_registry: Field records and their effectors
    - validation: validator classification and merge
    - submission: IDLE/SUBMITTING state machine
    - snapshot_model: immutable FormState
    - form: the Form owner and its actions bundle
    - config: construction options
"""

from formstate.completion import Completion
from formstate.config import FormConfig, noop
from formstate.exceptions import FieldNotFoundError, FormStateError
from formstate.field_registry import Field, FieldEffectors, FieldRegistry
from formstate.form import Form, FormActions
from formstate.paths import MISSING, get_path, merge_trees, set_path, strict_equal, unset_path
from formstate.snapshot_model import FormState, build_form_state
from formstate.submission import SubmissionController, SubmissionPhase
from formstate.validation import ValidationOrchestrator, concatenate_errors, is_pending, overlay_errors

__all__ = [
    # Form
    'Form',
    'FormActions',
    'FormConfig',
    'noop',
    'Completion',
    # Registry
    'Field',
    'FieldEffectors',
    'FieldRegistry',
    # Validation
    'ValidationOrchestrator',
    'concatenate_errors',
    'is_pending',
    'overlay_errors',
    # Submission
    'SubmissionController',
    'SubmissionPhase',
    # Snapshot
    'FormState',
    'build_form_state',
    # Paths
    'MISSING',
    'get_path',
    'set_path',
    'unset_path',
    'merge_trees',
    'strict_equal',
    # Errors
    'FormStateError',
    'FieldNotFoundError',
]

__version__ = '1.0.0'
__description__ = 'Form-state orchestration engine with merged sync/async validation'
