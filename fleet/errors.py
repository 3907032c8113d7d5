"""Exceptions raised by the fleet store and services."""

from typing import Iterable, List, Union


class FleetError(Exception):
    """Base class for all fleet errors."""


class NotFoundError(FleetError):
    """An entity id does not resolve to a stored entity."""

    def __init__(self, kind: str, entity_id: Union[int, str]):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} {entity_id} not found")


class ValidationInputError(FleetError):
    """A create/update payload was rejected."""

    def __init__(self, errors: Union[str, Iterable[str]]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))


class PersistenceError(FleetError):
    """The data file could not be read or written."""
