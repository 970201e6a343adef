"""Patient registry: registration, lookup and a query console over an embedded SQL store."""

__version__ = "1.0.0"
