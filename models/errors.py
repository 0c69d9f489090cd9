"""
Exception types raised by the dispatch core.

Failures here are data-validation failures: they are raised at the boundary
where a record is built or a value is parsed, never deep inside a computation.
"""


class DispatchError(Exception):
    """Base class for all dispatch errors."""


class MalformedInputError(DispatchError, ValueError):
    """Input that cannot be turned into a meaningful number or coordinate."""


class DuplicateAssignmentError(DispatchError):
    """An order already has an active (non-terminal) assignment."""


class UnknownAssignmentError(DispatchError, LookupError):
    """No active assignment exists for the order."""


class LocationUnavailableError(DispatchError):
    """The location provider could not produce a position."""


class InvalidTransitionError(DispatchError):
    """A status change the lifecycle does not allow."""

    def __init__(self, entity: str, current: str, requested: str):
        self.entity = entity
        self.current = current
        self.requested = requested
        super().__init__(f"{entity} cannot move from '{current}' to '{requested}'")
