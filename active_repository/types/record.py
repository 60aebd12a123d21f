import typing as t
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError


IdT = t.Union[int, str]


def normalize_key(key: t.Any) -> str:
    """Document stores key records by ``_id``; locally the same value lives under ``id``."""
    key = str(key)
    return "id" if key == "_id" else key


class Record(BaseModel):
    """
    A pydantic model that can be held in a record store. Every record carries an ``id`` (``None`` until the store
    assigns one) and ``created_at``/``updated_at`` timestamps, which are maintained by :meth:`set_timestamps` before
    each validation pass.

    Two records are equal when they are instances of the same class, have the same non-null ``id``, and were created
    at the same time. The remaining attributes take no part in equality, so an updated record still equals the
    version of itself that was saved before the update.

    Subclasses declare their fields the usual pydantic way. Fields should have defaults, because records are built
    from partial attribute mappings (see :func:`~active_repository.serialization.serialize`).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    id: t.Optional[IdT] = None
    created_at: t.Optional[datetime] = None
    updated_at: t.Optional[datetime] = None

    _errors: t.List[str] = PrivateAttr(default_factory=list)

    def __eq__(self, other):
        return (
            type(other) is type(self)
            and self.id is not None
            and self.id == other.id
            and self.created_at == other.created_at
        )

    @classmethod
    def field_names(cls) -> t.List[str]:
        """The names of the fields declared on this record class, in declaration order."""
        return list(cls.model_fields)

    @property
    def attributes(self) -> t.Dict[str, t.Any]:
        """A shallow copy of this record's field values, keyed by field name."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    def assign_attributes(self, attributes: t.Mapping[str, t.Any]):
        """
        Mass-assigns ``attributes`` onto this record. The ``_id`` key is stored as ``id``, and keys which aren't
        declared fields are ignored.
        """
        fields = type(self).model_fields
        for key, value in attributes.items():
            key = normalize_key(key)
            if key in fields:
                setattr(self, key, value)
        return self

    @property
    def errors(self) -> t.List[str]:
        """The error messages produced by the most recent call to :meth:`is_valid`."""
        return list(self._errors)

    def set_timestamps(self):
        now = datetime.now(timezone.utc)
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now

    def validate_record(self) -> t.List[str]:
        """Override to add business rules. Returns a list of error messages, empty when the record is valid."""
        return []

    def is_valid(self) -> bool:
        """
        Refreshes the timestamps, then checks the current field values against the field declarations and the
        :meth:`validate_record` rules. The messages of any failures are kept in :attr:`errors`.
        """
        self.set_timestamps()
        errors = []
        try:
            type(self).model_validate(self.attributes)
        except ValidationError as exc:
            for error in exc.errors():
                location = ".".join(str(part) for part in error["loc"])
                errors.append(f"{location}: {error['msg']}")
        errors.extend(self.validate_record())
        self._errors = errors
        return len(errors) == 0


RecordT = t.TypeVar("RecordT", bound=Record)  # used to help static type checking tools
