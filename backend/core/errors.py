class ConfigurationError(RuntimeError):
    """A required environment value is missing."""

class BackendError(RuntimeError):
    """Network failure or non-2xx response from an external service."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

class RecordNotFoundError(LookupError):
    pass

class InvalidTransitionError(ValueError):
    pass

class DuplicateRecordError(ValueError):
    pass

class InvalidUrlError(ValueError):
    pass
