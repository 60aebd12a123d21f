class RepositoryError(Exception):
    """Base class for all errors raised by this package."""


class DuplicateIdError(RepositoryError):
    """An insert would store two records under the same id."""


class RecordNotFoundError(RepositoryError, LookupError):
    """No record exists for the requested id."""

    def __init__(self, model_name: str, id_):
        super().__init__(f"couldn't find {model_name} with id={id_!r}")
        self.id = id_


class QueryError(RepositoryError, ValueError):
    """A query string or criteria object could not be understood."""


class ArgumentError(RepositoryError, TypeError):
    """A repository method was called with missing or invalid arguments."""


class ConfigurationError(RepositoryError):
    """A model class is configured in a way that makes an operation impossible."""


class DelegateError(RepositoryError):
    """A delegate store raised an error while handling a forwarded operation."""

    def __init__(self, operation: str, model_name: str, cause: Exception):
        super().__init__(f"delegate {operation!r} failed for {model_name}: {cause}")
        self.operation = operation
        self.cause = cause
