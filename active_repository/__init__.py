"""
A class-level repository for `Pydantic <https://docs.pydantic.dev/>`_ models. Subclasses of
:class:`~active_repository.base.Repository` get ``create``, ``find``, ``where``, ``save``, ``update_attribute`` and
friends, and keep their records either in an in-process record store or in a delegate store reached through a
:class:`~active_repository.adapters.base.DelegateAdapter`. Callers use the same API either way.
"""
