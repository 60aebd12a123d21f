"""
Converts records between their local and delegate representations. Whatever a delegate store hands back (a plain
mapping, a record of another class, or any object exposing an ``attributes`` mapping) is turned into a fresh instance
of the local record class here, and only here.
"""
import copy
import typing as t

from active_repository.types.record import RecordT, normalize_key


def attributes_of(source: t.Any) -> t.Mapping[str, t.Any]:
    """The attribute mapping of a delegate object, record, or mapping."""
    if isinstance(source, t.Mapping):
        return source
    attributes = getattr(source, "attributes", None)
    if isinstance(attributes, t.Mapping):
        return attributes
    raise TypeError(f"cannot read attributes from {type(source).__name__}")


def serialize(target_type: t.Type[RecordT], source: t.Any) -> t.Any:
    """
    Builds a new ``target_type`` record from the attributes of ``source``, normalizing the ``_id`` key to ``id``.
    Fields missing from ``source`` keep their defaults, and keys that aren't fields of ``target_type`` are dropped.
    Lists and tuples are serialized element-wise into a list, and ``None`` passes through. Values are deep-copied, so
    the result never shares mutable state with ``source``.

    The result depends only on the arguments, so serializing equal attributes twice yields equal records.
    """
    if source is None:
        return None
    if isinstance(source, (list, tuple)):
        return [serialize(target_type, element) for element in source]
    fields = target_type.model_fields
    values = {}
    for key, value in attributes_of(source).items():
        key = normalize_key(key)
        if key in fields:
            values[key] = copy.deepcopy(value)
    # Values are taken as-is; checking them is the job of `Record.is_valid`.
    return target_type.model_construct(**values)
