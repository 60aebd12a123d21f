import threading
import typing as t
from uuid import uuid4

from active_repository.adapters.base import DelegateAdapter
from active_repository.errors import DuplicateIdError, RecordNotFoundError
from active_repository.persistence.query import Query
from active_repository.types.record import IdT


class Document:
    """A schemaless document held by a :class:`DocumentStoreAdapter`. Its id lives under the ``_id`` key."""

    def __init__(self, attributes: t.Mapping[str, t.Any]):
        self._attributes = dict(attributes)

    @property
    def id(self):
        return self._attributes.get("_id")

    @property
    def attributes(self) -> t.Dict[str, t.Any]:
        return dict(self._attributes)

    def __repr__(self):
        return f"Document({self._attributes!r})"


def _model_name(model_type) -> str:
    return getattr(model_type, "__name__", str(model_type))


class DocumentStoreAdapter(DelegateAdapter):
    r"""
    A simple in-process document store, keyed by ``_id`` like most document databases. Useful for testing delegate
    behavior, or other lightweight needs. Collections are kept per delegate model type, in insertion order, and every
    read hands out a copy of the stored document. `WHERE` clause queries are :math:`\mathcal{O}(n)`.
    """

    id_key = "_id"

    def __init__(self):
        self._collections: t.Dict[t.Any, t.List[t.Dict[str, t.Any]]] = {}
        self._lock = threading.RLock()

    def all(self, model_type) -> t.List[Document]:
        return [Document(doc) for doc in self._collection(model_type)]

    def create(self, model_type, attributes: t.Mapping[str, t.Any]) -> Document:
        with self._lock:
            doc = {key: value for key, value in attributes.items() if key not in {"id", "_id"}}
            doc_id = attributes.get("_id", attributes.get("id"))
            if doc_id is None:
                doc_id = uuid4().hex
            elif self._find_raw(model_type, doc_id) is not None:
                raise DuplicateIdError(f"a {_model_name(model_type)} document with _id={doc_id!r} already exists")
            doc["_id"] = doc_id
            self._collection(model_type).append(doc)
            return Document(doc)

    def delete_all(self, model_type):
        with self._lock:
            self._collections.pop(model_type, None)

    def exists(self, model_type, id_: IdT) -> bool:
        return self._find_raw(model_type, id_) is not None

    def find(self, model_type, id_: IdT) -> Document:
        return Document(self._get_raw(model_type, id_))

    def first(self, model_type) -> t.Optional[Document]:
        docs = self._collection(model_type)
        return Document(docs[0]) if docs else None

    def last(self, model_type) -> t.Optional[Document]:
        docs = self._collection(model_type)
        return Document(docs[-1]) if docs else None

    def where(self, model_type, criteria, *params) -> t.List[Document]:
        query = Query.parse(criteria, *params)
        matches = query.filter(self._collection(model_type), lambda doc, field: doc.get(self.translate_key(field)))
        return [Document(doc) for doc in matches]

    def update_attribute(self, model_type, id_: IdT, key: str, value: t.Any):
        with self._lock:
            self._get_raw(model_type, id_)[key] = value

    def update_attributes(self, model_type, id_: IdT, attributes: t.Mapping[str, t.Any]):
        with self._lock:
            self._get_raw(model_type, id_).update(attributes)

    def _collection(self, model_type) -> t.List[t.Dict[str, t.Any]]:
        return self._collections.setdefault(model_type, [])

    def _find_raw(self, model_type, id_: IdT) -> t.Optional[t.Dict[str, t.Any]]:
        if id_ is None:
            return None
        for doc in self._collection(model_type):
            if str(doc["_id"]) == str(id_):
                return doc
        return None

    def _get_raw(self, model_type, id_: IdT) -> t.Dict[str, t.Any]:
        doc = self._find_raw(model_type, id_)
        if doc is None:
            raise RecordNotFoundError(_model_name(model_type), id_)
        return doc
