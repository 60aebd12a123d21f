"""
The boundary between repository classes and the stores they delegate to. A delegate store is reached through a
:class:`~active_repository.adapters.base.DelegateAdapter`, and the
:mod:`~active_repository.adapters.dispatcher` decides, per call, whether an operation runs against the in-memory
record store or is forwarded to the adapter configured for the model class.
"""
