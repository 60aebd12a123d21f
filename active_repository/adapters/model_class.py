import typing as t

from active_repository.adapters.base import DelegateAdapter, DelegateObject
from active_repository.types.record import IdT


class ModelClassAdapter(DelegateAdapter):
    """
    Forwards every operation to the delegate model type's own class-level API: ``all()``, ``create(**attributes)``,
    ``delete_all()``, ``exists(id)``, ``find(id)``, ``first()``, ``last()`` and ``where(criteria, *params)``, with
    updates applied through the ``update_attribute``/``update_attributes`` methods of the object ``find`` returns.
    Another :class:`~active_repository.base.Repository` subclass satisfies all of this, as do most active-record style
    ORM models.
    """

    def all(self, model_type) -> t.List[DelegateObject]:
        return list(model_type.all())

    def create(self, model_type, attributes: t.Mapping[str, t.Any]) -> t.Optional[DelegateObject]:
        return model_type.create(**attributes)

    def delete_all(self, model_type):
        model_type.delete_all()

    def exists(self, model_type, id_: IdT) -> bool:
        return model_type.exists(id_)

    def find(self, model_type, id_: IdT) -> DelegateObject:
        return model_type.find(id_)

    def first(self, model_type) -> t.Optional[DelegateObject]:
        return model_type.first()

    def last(self, model_type) -> t.Optional[DelegateObject]:
        return model_type.last()

    def where(self, model_type, criteria, *params) -> t.List[DelegateObject]:
        return list(model_type.where(criteria, *params))

    def update_attribute(self, model_type, id_: IdT, key: str, value: t.Any):
        model_type.find(id_).update_attribute(key, value)

    def update_attributes(self, model_type, id_: IdT, attributes: t.Mapping[str, t.Any]):
        model_type.find(id_).update_attributes(attributes)
