import os
import typing as t

from pydantic import BaseModel, ConfigDict


SAVE_IN_MEMORY_ENV = "ACTIVE_REPOSITORY_SAVE_IN_MEMORY"


def force_save_in_memory() -> bool:
    """
    Whether the environment forces every repository class to persist in memory, regardless of its configuration.
    Handy in test suites, so a whole suite can run without any delegate store.
    """
    return os.getenv(SAVE_IN_MEMORY_ENV, "").strip().lower() in {"1", "true", "yes"}


class RepositoryConfig(BaseModel):
    """
    How a repository class persists its records. Instances are never mutated; reconfiguring a class replaces its
    config with a new one carrying a higher :attr:`version`.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    save_in_memory: bool = True
    """Persist in the in-process record store, ignoring :attr:`model_class`."""

    model_class: t.Any = None
    """The delegate model type records are forwarded to when not saving in memory."""

    adapter: t.Any = None
    """The :class:`~active_repository.adapters.base.DelegateAdapter` that talks to :attr:`model_class`."""

    version: int = 0
