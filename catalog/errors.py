"""Exceptions raised while loading the language catalog."""


class CatalogError(Exception):
    """Base class for catalog loading failures."""


class ResourceLoadError(CatalogError):
    """The resource could not be fetched (network, timeout, HTTP status, I/O)."""


class ResourceParseError(CatalogError):
    """The resource was fetched but is not a JSON array of record objects."""
