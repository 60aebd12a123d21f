import typing as t
from abc import ABC, abstractmethod

from active_repository.types.record import IdT


class DelegateObject(t.Protocol):
    """What the repository needs from an object handed back by a delegate store."""

    id: t.Any

    @property
    def attributes(self) -> t.Mapping[str, t.Any]:
        ...


class DelegateAdapter(ABC):
    """
    The capabilities a delegate store must offer for repository classes to forward their operations to it. Every
    method takes the delegate model type first, so a single adapter instance can serve several model types.

    Lookups of a missing id raise :class:`~active_repository.errors.RecordNotFoundError`.
    """

    id_key = "id"
    """The name the underlying store keeps record ids under."""

    def translate_key(self, key: str) -> str:
        """Maps a local attribute name to the name the underlying store uses for it."""
        return self.id_key if key == "id" else key

    @abstractmethod
    def all(self, model_type) -> t.List[DelegateObject]:
        pass

    @abstractmethod
    def create(self, model_type, attributes: t.Mapping[str, t.Any]) -> t.Optional[DelegateObject]:
        """Creates and saves a new delegate object. Returns ``None`` if the store rejected it."""
        pass

    @abstractmethod
    def delete_all(self, model_type):
        pass

    @abstractmethod
    def exists(self, model_type, id_: IdT) -> bool:
        pass

    @abstractmethod
    def find(self, model_type, id_: IdT) -> DelegateObject:
        pass

    @abstractmethod
    def first(self, model_type) -> t.Optional[DelegateObject]:
        pass

    @abstractmethod
    def last(self, model_type) -> t.Optional[DelegateObject]:
        pass

    @abstractmethod
    def where(self, model_type, criteria, *params) -> t.List[DelegateObject]:
        """Retrieves the delegate objects matching ``criteria``, a mapping or a query string with its ``params``."""
        pass

    @abstractmethod
    def update_attribute(self, model_type, id_: IdT, key: str, value: t.Any):
        """Sets ``key`` to ``value`` on the object stored under ``id_`` and saves it."""
        pass

    @abstractmethod
    def update_attributes(self, model_type, id_: IdT, attributes: t.Mapping[str, t.Any]):
        """Applies every item of ``attributes`` to the object stored under ``id_`` and saves it."""
        pass
