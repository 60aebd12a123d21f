import copy
import typing as t

from loguru import logger

from active_repository.adapters.base import DelegateAdapter
from active_repository.adapters.dispatcher import adapter_for, forward, uses_record_store
from active_repository.adapters.model_class import ModelClassAdapter
from active_repository.config import RepositoryConfig, force_save_in_memory
from active_repository.errors import ArgumentError, RecordNotFoundError
from active_repository.persistence.query import Query
from active_repository.persistence.record_store.memory import InMemoryRecordStore
from active_repository.persistence.registry import registry
from active_repository.serialization import serialize
from active_repository.types.record import IdT, Record, normalize_key


RepositoryT = t.TypeVar("RepositoryT", bound="Repository")


class Repository(Record):
    """
    Base class for models which are persisted either in memory or in a delegate store, behind one class-level CRUD
    API. By default records are kept in an in-process record store. Point a class at a delegate model type to have
    its records stored there instead:

    >>> class Person(Repository):
    ...     name: str = ""
    ...
    ... Person.configure(model_class=PersonDocument, adapter=DocumentStoreAdapter())
    ... peter = Person.create(name="Peter")
    ... # `peter` is a `Person`, built from the document the delegate store created.

    Whichever backend is used, every read returns fresh ``Repository`` instances, so changing one does not change the
    stored record until it is saved or updated through :meth:`save`, :meth:`update_attribute` or
    :meth:`update_attributes`.
    """

    repository_config: t.ClassVar[RepositoryConfig] = RepositoryConfig()

    @classmethod
    def configure(
        cls,
        model_class: t.Any = None,
        *,
        save_in_memory: t.Optional[bool] = None,
        adapter: t.Optional[DelegateAdapter] = None,
    ) -> RepositoryConfig:
        """
        Replaces this class's persistence configuration. Meant to be called once, before the class is used.

        Parameters
        ----------
        model_class : object, optional
            The delegate model type to persist records with. Keeps the current one when omitted.
        save_in_memory : bool, optional
            Whether to ignore ``model_class`` and persist in memory. When omitted, it is true exactly when there is no
            delegate model type, or the delegate is this class itself.
        adapter : DelegateAdapter, optional
            How to reach ``model_class``. When omitted, the current adapter is kept while ``model_class`` stays the
            same. Otherwise a :class:`ModelClassAdapter` is used, which calls ``model_class``'s own class-level API.
        """
        with registry.lock_for(cls):
            current = cls.repository_config
            if model_class is None:
                model_class = current.model_class
            same_delegate = model_class == current.model_class
            if save_in_memory is None:
                save_in_memory = model_class is None or model_class is cls
            if adapter is None and model_class is not None and model_class is not cls:
                adapter = current.adapter if same_delegate and current.adapter is not None else ModelClassAdapter()
            if registry.has_store(cls) and len(cls._store()) > 0:
                logger.warning(f"reconfiguring {cls.__name__} after records were already stored in memory")
            cls.repository_config = RepositoryConfig(
                save_in_memory=save_in_memory,
                model_class=model_class,
                adapter=adapter,
                version=current.version + 1,
            )
            logger.debug(f"{cls.__name__} configured: {cls.repository_config}")
            return cls.repository_config

    @classmethod
    def get_model_class(cls):
        """Returns the type responsible for persisting this class's records, which is the class itself in memory."""
        config = cls.repository_config
        if config.model_class is None or config.save_in_memory or force_save_in_memory():
            return cls
        return config.model_class

    @classmethod
    def serialized_attributes(cls) -> t.List[str]:
        return [str(name) for name in cls.field_names()]

    @classmethod
    def _store(cls) -> InMemoryRecordStore:
        return registry.store_for(cls)

    @classmethod
    def all(cls: t.Type[RepositoryT]) -> t.List[RepositoryT]:
        if uses_record_store(cls):
            return [serialize(cls, record) for record in cls._store().all()]
        return serialize(cls, forward(cls, "all"))

    @classmethod
    def count(cls) -> int:
        if uses_record_store(cls):
            return len(cls._store())
        return len(cls.all())

    @classmethod
    def delete_all(cls):
        if uses_record_store(cls):
            cls._store().delete_all()
        else:
            forward(cls, "delete_all")

    @classmethod
    def exists(cls, id_: IdT) -> bool:
        if uses_record_store(cls):
            return cls._store().exists(id_)
        return bool(forward(cls, "exists", id_))

    @classmethod
    def find(cls: t.Type[RepositoryT], id_: IdT) -> RepositoryT:
        """Retrieves the record stored under ``id_``, raising :class:`RecordNotFoundError` if there is none."""
        if uses_record_store(cls):
            return serialize(cls, cls._store().find(id_))
        return serialize(cls, forward(cls, "find", id_))

    @classmethod
    def find_by_id(cls: t.Type[RepositoryT], id_: IdT) -> t.Optional[RepositoryT]:
        try:
            return cls.find(id_)
        except RecordNotFoundError:
            return None

    @classmethod
    def first(cls: t.Type[RepositoryT]) -> t.Optional[RepositoryT]:
        if uses_record_store(cls):
            return serialize(cls, cls._store().first())
        return serialize(cls, forward(cls, "first"))

    @classmethod
    def last(cls: t.Type[RepositoryT]) -> t.Optional[RepositoryT]:
        if uses_record_store(cls):
            return serialize(cls, cls._store().last())
        return serialize(cls, forward(cls, "last"))

    @classmethod
    def where(cls: t.Type[RepositoryT], criteria=None, *params, **where_equals) -> t.Iterator[RepositoryT]:
        """
        Lazily yields the records matching the given criteria, in store order. Criteria can be given in any of these
        ways:

        >>> Person.where({"name": "Peter"})
        ... Person.where(name="Peter")
        ... Person.where("name = 'Peter'")
        ... Person.where("name = ? AND age = ?", "Peter", 30)
        """
        if criteria is None and not where_equals:
            raise ArgumentError("wrong number of arguments (0 for 1)")
        if criteria is None:
            criteria = where_equals
        elif where_equals:
            raise ArgumentError("pass criteria either positionally or as keyword arguments, not both")
        if uses_record_store(cls):
            matches = Query.parse(criteria, *params).filter(cls._store().all())
            return (serialize(cls, record) for record in matches)
        return (serialize(cls, obj) for obj in forward(cls, "where", criteria, *params))

    @classmethod
    def find_by(cls: t.Type[RepositoryT], **criteria) -> t.Optional[RepositoryT]:
        """The first record whose declared fields equal ``criteria``, or ``None``."""
        return next(cls.find_all_by(**criteria), None)

    @classmethod
    def find_all_by(cls: t.Type[RepositoryT], **criteria) -> t.Iterator[RepositoryT]:
        unknown = {normalize_key(field) for field in criteria} - set(cls.field_names())
        if unknown:
            raise ArgumentError(f"{cls.__name__} has no field(s) named {sorted(unknown)}")
        return cls.where(criteria)

    @classmethod
    def create(cls: t.Type[RepositoryT], **attributes) -> t.Optional[RepositoryT]:
        """
        Creates and persists a new record. An ``id`` that is already taken is dropped, so a fresh one is assigned
        instead of overwriting the existing record. Returns ``None`` if the record is invalid, in which case nothing
        is persisted.
        """
        with registry.lock_for(cls):
            candidate = serialize(cls, attributes)
            if candidate.id is not None and cls.exists(candidate.id):
                candidate.id = None
            if not candidate.is_valid():
                logger.debug(f"{cls.__name__} was not created, it is invalid: {candidate.errors}")
                return None
            if uses_record_store(cls):
                candidate.save()
                return serialize(cls, candidate)
            if candidate.id is None:
                attributes = {key: value for key, value in attributes.items() if normalize_key(key) != "id"}
            return serialize(cls, forward(cls, "create", attributes))

    @classmethod
    def find_or_create(cls: t.Type[RepositoryT], criteria: t.Optional[t.Mapping] = None, **where_equals):
        """Returns the first record matching the criteria, creating one with those attributes if there is none."""
        attributes = {**(criteria or {}), **where_equals}
        with registry.lock_for(cls):
            found = next(cls.where(attributes), None)
            if found is not None:
                return found
            return cls.create(**attributes)

    def save(self, force=False) -> bool:
        """
        Persists this record. In memory, a record without an id is inserted and given one. A record whose id is
        already stored is written onto the stored instance, which is then re-inserted, moving it to the end of the
        store. Classes with a delegate store upsert their record there instead (see :meth:`persist`).
        """
        cls = type(self)
        if not uses_record_store(cls):
            return self.persist()
        store = cls._store()
        with registry.lock_for(cls):
            existing = store.find_by_id(self.id)
            if force or self.id is None or existing is None or existing is self:
                store.insert(self)
            elif self.is_valid():
                logger.debug(f"saving {cls.__name__} {self.id} through the stored instance")
                changes = {key: value for key, value in self.attributes.items() if key != "id"}
                existing.assign_attributes(copy.deepcopy(changes))
                existing.save(force=True)
                self.assign_attributes(copy.deepcopy(existing.attributes))
            else:
                logger.warning(f"{cls.__name__} {self.id} was not saved, it is invalid: {self.errors}")
        return True

    def persist(self) -> bool:
        """Validates this record, then saves it in memory or upserts it into the delegate store."""
        if not self.is_valid():
            return False
        if uses_record_store(type(self)):
            return self.save()
        return self._convert() is not None

    def reload(self):
        """
        Overwrites this record's attributes with the ones currently persisted under its id. Left untouched if nothing
        is persisted under that id.
        """
        found = type(self).find_by_id(self.id) if self.id is not None else None
        if found is not None:
            self.assign_attributes(found.attributes)
        return self

    def update_attribute(self, key: str, value: t.Any) -> bool:
        """
        Sets ``key`` to ``value``, persists the change, and reloads. In memory, nothing is persisted and ``False`` is
        returned if the change makes the record invalid. A delegate store is updated through its adapter, with ``id``
        renamed to the delegate's id key, and judges validity itself.
        """
        cls = type(self)
        with registry.lock_for(cls):
            if uses_record_store(cls):
                if not self._save_changes({key: value}):
                    return False
            else:
                forward(cls, "update_attribute", self.id, adapter_for(cls).translate_key(normalize_key(key)), value)
            self.reload()
        return True

    def update_attributes(self, attributes: t.Mapping[str, t.Any]) -> bool:
        """Like :meth:`update_attribute`, for several attributes at once. The ``id`` attribute is never updated."""
        cls = type(self)
        changes = {normalize_key(key): value for key, value in attributes.items() if normalize_key(key) != "id"}
        with registry.lock_for(cls):
            if uses_record_store(cls):
                if not self._save_changes(changes):
                    return False
            else:
                adapter = adapter_for(cls)
                translated = {adapter.translate_key(key): value for key, value in changes.items()}
                forward(cls, "update_attributes", self.id, translated)
            self.reload()
        return True

    def _save_changes(self, changes: t.Mapping[str, t.Any]) -> bool:
        for key, value in changes.items():
            setattr(self, normalize_key(key), value)
        if not self.is_valid():
            logger.warning(f"{type(self).__name__} {self.id} was not updated, it is invalid: {self.errors}")
            return False
        return self.save()

    def _convert(self, attribute="id"):
        """
        Upserts this record into the delegate store: the delegate object whose ``attribute`` matches this record's is
        updated with this record's attributes, or a new one is created when there is no match. The delegate keeps its
        own id, which is then copied onto this record. Returns the delegate object.
        """
        cls = type(self)
        adapter = adapter_for(cls)
        with registry.lock_for(cls):
            lookup = getattr(self, attribute)
            existing = None
            if lookup is not None:
                matches = forward(cls, "where", {attribute: lookup})
                existing = matches[0] if matches else None
            attributes = {key: value for key, value in self.attributes.items() if key != "id"}
            if existing is None:
                delegate = forward(cls, "create", attributes)
            else:
                translated = {adapter.translate_key(key): value for key, value in attributes.items()}
                forward(cls, "update_attributes", existing.id, translated)
                delegate = forward(cls, "find", existing.id)
            if delegate is not None:
                self.id = delegate.id
            return delegate
