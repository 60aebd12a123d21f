"""
In-process persistence for :class:`~active_repository.types.record.Record` models: an ordered record table with an id
index per model class (:mod:`~active_repository.persistence.record_store`), the registry that owns one such table per
class (:mod:`~active_repository.persistence.registry`), and the criteria evaluator used to query them
(:mod:`~active_repository.persistence.query`).
"""
