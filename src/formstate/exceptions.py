"""Form state exceptions."""


class FormStateError(Exception):
    """Base class for errors raised by the form state engine."""


class FieldNotFoundError(FormStateError, LookupError):
    """Raised when a single-field operation targets a path with no registered field."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Field {path} does not exist")
