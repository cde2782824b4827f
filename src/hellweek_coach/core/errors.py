"""Exception types shared by the session engine, stores and tracker."""


class TemplateNotFoundError(ValueError):
    """Raised when a session is started for an unknown workout template."""

    def __init__(self, template_id: str, valid: list[str] | None = None):
        self.template_id = template_id
        message = f"Unknown workout template '{template_id}'"
        if valid:
            message += f". Valid IDs: {', '.join(valid)}"
        super().__init__(message)


class RecordNotFoundError(LookupError):
    """Raised when a history record or ledger entry id does not exist."""

    pass


class StorageError(Exception):
    """Raised when the key-value store cannot read or write a value."""

    pass


class LedgerWriteError(StorageError):
    """Raised when a ledger mutation could not be persisted."""

    pass


class ValidationError(ValueError):
    """Raised when data validation fails."""

    pass
