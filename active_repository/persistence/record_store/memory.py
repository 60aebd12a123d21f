import copy
import threading
import typing as t

from loguru import logger

from active_repository.errors import DuplicateIdError
from active_repository.persistence.record_store.base import BaseRecordStore
from active_repository.types.record import IdT, RecordT


class InMemoryRecordStore(BaseRecordStore[RecordT]):
    r"""
    An ordered in-memory table of records with an index from id to slot. Records are appended in insertion order;
    re-inserting a record that is already stored moves it to the end. Inserts, deletes and id lookups are
    :math:`\mathcal{O}(1)`. Does not keep any indexes of non-id fields, so `WHERE` clause queries are
    :math:`\mathcal{O}(n)`.

    Ids are compared by their string form, so ``1`` and ``"1"`` name the same record. Records without an id get the
    next integer from a counter which never hands out an id that is currently indexed.
    """

    def __init__(self, record_class: t.Type[RecordT]):
        super().__init__(record_class)
        self.lock = threading.RLock()
        self._reset()
        self._dirty = False

    def _reset(self):
        # Slots only ever increase, so iterating `self._records` yields records in store order.
        self._records: t.Dict[int, RecordT] = {}
        self._next_slot = 0
        # Id index: `self._records[self._slots[str(id)]]`.
        self._slots: t.Dict[str, int] = {}
        # The key each slot was indexed under. A stored record's id may have been changed since.
        self._keys: t.Dict[int, str] = {}
        # Slots by `id()` of the stored instance.
        self._instances: t.Dict[int, int] = {}
        # Deep copies of each record's attributes as of its last insert.
        self._snapshots: t.Dict[int, t.Dict[str, t.Any]] = {}
        self._last_id = 0

    @property
    def dirty(self) -> bool:
        """Whether the store has been written to since it was last cleared or marked clean."""
        return self._dirty

    def mark_clean(self):
        self._dirty = False

    def insert(self, record: RecordT) -> bool:
        with self.lock:
            slot = self._instances.get(id(record))
            key = self._key(record.id)
            taken = self._slots.get(key) if record.id is not None else None
            if slot is not None and taken == slot and self._snapshots[slot] == record.attributes:
                # Same instance, unchanged since it was stored.
                return True
            if taken is not None and taken != slot and self._dirty:
                raise DuplicateIdError(f"Duplicate id found for record {record.attributes}")
            if not record.is_valid():
                logger.warning(f"{self.record_cls.__name__} record was not inserted, it is invalid: {record.errors}")
                return False

            if taken is not None and taken != slot:
                self._remove(taken)
            if slot is not None:
                self._remove(slot)

            if record.id is None:
                record.id = self._next_id()
                logger.debug(f"assigned id {record.id} to new {self.record_cls.__name__} record")
            self._track_id(record.id)
            self._dirty = True

            key = self._key(record.id)
            slot = self._next_slot
            self._next_slot += 1
            self._records[slot] = record
            self._slots[key] = slot
            self._keys[slot] = key
            self._instances[id(record)] = slot
            self._snapshots[slot] = copy.deepcopy(record.attributes)
            return True

    def find_by_id(self, id_: IdT) -> t.Optional[RecordT]:
        if id_ is None:
            return None
        slot = self._slots.get(self._key(id_))
        return None if slot is None else self._records[slot]

    def all(self) -> t.List[RecordT]:
        return list(self._records.values())

    def first(self) -> t.Optional[RecordT]:
        return next(iter(self._records.values()), None)

    def last(self) -> t.Optional[RecordT]:
        return next(reversed(self._records.values()), None) if self._records else None

    def delete(self, id_: IdT) -> bool:
        with self.lock:
            slot = self._slots.get(self._key(id_)) if id_ is not None else None
            if slot is None:
                return False
            self._remove(slot)
            self._dirty = True
            return True

    def delete_all(self):
        with self.lock:
            self._reset()
            self._dirty = False

    def __len__(self):
        return len(self._records)

    @staticmethod
    def _key(id_: IdT) -> str:
        return str(id_)

    def _remove(self, slot: int) -> RecordT:
        removed = self._records.pop(slot)
        key = self._keys.pop(slot)
        if self._slots.get(key) == slot:
            del self._slots[key]
        del self._instances[id(removed)]
        del self._snapshots[slot]
        return removed

    def _next_id(self) -> int:
        self._last_id += 1
        while self._key(self._last_id) in self._slots:
            self._last_id += 1
        return self._last_id

    def _track_id(self, id_: IdT):
        if isinstance(id_, int) and id_ > self._last_id:
            self._last_id = id_
