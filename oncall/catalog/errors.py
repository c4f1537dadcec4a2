"""Catalog exceptions.

Only backing-store failures are errors for lookups. A resource or service
that simply isn't in the catalog is reported as data, never raised.
"""


class CatalogError(Exception):
    """Base class for catalog errors."""


class CatalogUnavailableError(CatalogError):
    """The backing store could not be reached, so "no owner" can't be told apart from "don't know"."""
