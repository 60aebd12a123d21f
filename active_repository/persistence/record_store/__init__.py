"""
Contains the base class for record store behavior and its in-memory implementation. A record store keeps the records
of one model class in insertion order, indexes them by id, assigns ids to records that don't have one, and refuses to
hold two records under the same id.
"""
