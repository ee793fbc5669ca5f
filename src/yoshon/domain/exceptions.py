"""Domain-level exceptions.

All failures are expressed as subclasses of DomainException so the HTTP
and CLI layers can catch them uniformly and map them to a status code or
a user-friendly message.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Input was malformed or an invariant would be violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class StoreError(DomainException):
    """The backing store could not be read or written."""
