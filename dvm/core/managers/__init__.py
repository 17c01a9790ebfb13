"""Data access managers for the dvm store.

Each module provides plain functions that encapsulate CRUD operations and
business rules.  Managers accept a SQLAlchemy ``Session`` as their first
parameter and raise domain exceptions from ``dvm.core.errors``, never click
exceptions -- that translation is the CLI's responsibility.
"""
