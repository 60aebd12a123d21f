import threading
import typing as t

from active_repository.persistence.record_store.memory import InMemoryRecordStore
from active_repository.types.record import Record


class RecordStoreRegistry:
    """
    Owns one :class:`InMemoryRecordStore` and one re-entrant lock per model class. Stores are created on first access
    and live until :meth:`reset` is called.
    """

    def __init__(self):
        self._stores: t.Dict[type, InMemoryRecordStore] = {}
        self._locks: t.Dict[type, threading.RLock] = {}
        self._guard = threading.Lock()

    def store_for(self, model_class: t.Type[Record]) -> InMemoryRecordStore:
        with self._guard:
            if model_class not in self._stores:
                self._stores[model_class] = InMemoryRecordStore(model_class)
            return self._stores[model_class]

    def lock_for(self, model_class: type) -> threading.RLock:
        """The lock guarding check-then-act sequences on ``model_class``, whether it persists locally or not."""
        with self._guard:
            if model_class not in self._locks:
                self._locks[model_class] = threading.RLock()
            return self._locks[model_class]

    def has_store(self, model_class: type) -> bool:
        return model_class in self._stores

    def reset(self, model_class: t.Optional[type] = None):
        """Drops the store of ``model_class``, or of every model class when none is given."""
        with self._guard:
            if model_class is None:
                self._stores.clear()
            else:
                self._stores.pop(model_class, None)


registry = RecordStoreRegistry()
"""The process-wide registry used by :class:`~active_repository.base.Repository`."""
