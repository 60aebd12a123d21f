import typing as t

from loguru import logger

from active_repository.adapters.base import DelegateAdapter
from active_repository.errors import ArgumentError, ConfigurationError, DelegateError, RepositoryError


OPERATIONS = frozenset(
    {
        "all",
        "create",
        "delete_all",
        "exists",
        "find",
        "first",
        "last",
        "where",
        "update_attribute",
        "update_attributes",
    }
)
"""The operations a model class may forward to its delegate adapter."""


def uses_record_store(model_class) -> bool:
    """
    Whether ``model_class`` is its own persistence target, so its operations run against the in-memory record store.
    Resolved anew on every call, so reconfiguring a class takes effect immediately.
    """
    return model_class.get_model_class() is model_class


def adapter_for(model_class) -> DelegateAdapter:
    """The adapter ``model_class`` forwards its operations to."""
    adapter = model_class.repository_config.adapter
    if adapter is None:
        raise ConfigurationError(
            f"{model_class.__name__} delegates to {model_class.get_model_class()!r} but has no adapter"
        )
    return adapter


def forward(model_class, operation: str, *args) -> t.Any:
    """
    Runs ``operation`` on the delegate adapter of ``model_class``, passing the delegate model type followed by
    ``args``. Errors from this package pass through unchanged; anything else the delegate raises is re-raised as a
    :class:`DelegateError`.
    """
    if operation not in OPERATIONS:
        raise ArgumentError(f"{operation!r} is not a delegate operation")
    adapter = adapter_for(model_class)
    delegate_type = model_class.get_model_class()
    logger.debug(f"forwarding {operation} for {model_class.__name__} to {type(adapter).__name__}")
    try:
        result = getattr(adapter, operation)(delegate_type, *args)
        if operation in {"all", "where"}:
            # Drain lazy results here, so their errors are raised inside this block.
            result = list(result)
        return result
    except RepositoryError:
        raise
    except Exception as exc:
        logger.exception(f"delegate {operation} failed for {model_class.__name__}")
        raise DelegateError(operation, model_class.__name__, exc) from exc
