import typing as t
from abc import ABC, abstractmethod

from active_repository.errors import RecordNotFoundError
from active_repository.persistence.query import Query
from active_repository.types.record import IdT, RecordT


class BaseRecordStore(ABC, t.Generic[RecordT]):
    """
    Abstract base class for a table of records belonging to a single model class.

    Parameters
    ----------
    record_class : Record type
        The class of the records held by this store.
    """

    def __init__(self, record_class: t.Type[RecordT]):
        self.record_cls = record_class

    @abstractmethod
    def insert(self, record: RecordT) -> bool:
        """
        Stores ``record``, assigning it an id if it has none. Returns ``False`` without touching the store when the
        record fails validation.
        """
        pass

    @abstractmethod
    def find_by_id(self, id_: IdT) -> t.Optional[RecordT]:
        """Retrieves a record from the store, returning ``None`` if it doesn't exist."""
        pass

    @abstractmethod
    def all(self) -> t.List[RecordT]:
        """A snapshot of every record in the store, in store order."""
        pass

    @abstractmethod
    def delete(self, id_: IdT) -> bool:
        """
        Deletes a record from the store, returning ``True`` if the record was deleted, and ``False`` if it didn't
        exist.
        """
        pass

    @abstractmethod
    def delete_all(self):
        """Removes every record from the store and restarts id assignment."""
        pass

    def find(self, id_: IdT) -> RecordT:
        """Retrieves a record from the store, raising :class:`RecordNotFoundError` if it doesn't exist."""
        record = self.find_by_id(id_)
        if record is None:
            raise RecordNotFoundError(self.record_cls.__name__, id_)
        return record

    def exists(self, id_: IdT) -> bool:
        try:
            self.find(id_)
        except RecordNotFoundError:
            return False
        return True

    def first(self) -> t.Optional[RecordT]:
        records = self.all()
        return records[0] if records else None

    def last(self) -> t.Optional[RecordT]:
        records = self.all()
        return records[-1] if records else None

    def where(self, criteria, *params) -> t.Iterator[RecordT]:
        """Lazily yields the records matching ``criteria``, which is anything :meth:`Query.parse` accepts."""
        return Query.parse(criteria, *params).filter(self.all())

    def __len__(self):
        return len(self.all())
