"""
Data structures shared by the record stores, the serialization bridge, and the repository facade. The main one is
:class:`~active_repository.types.record.Record`, the pydantic base class every persisted model derives from.
"""
