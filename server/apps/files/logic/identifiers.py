"""Parsing of entity ids and folder scopes received from callers."""

import uuid
from typing import Final

from server.apps.api.exceptions import NotFoundError, ValidationError
from server.apps.files.infrastructure.repository import FolderScope

# Values that explicitly select the root level
_ROOT_MARKERS: Final = frozenset(('', 'null', 'none'))


def parse_entity_id(value: str | uuid.UUID, not_found_message: str) -> uuid.UUID:
    """Parse the id of an entity addressed directly (e.g. in a URL).

    A malformed id cannot name an existing entity, so it is reported the
    same way as a missing one.

    Args:
        value: Raw id.
        not_found_message: Message for the NotFoundError.

    Returns:
        Parsed UUID.

    Raises:
        NotFoundError: If the value is not a valid id.
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as error:
        raise NotFoundError(not_found_message) from error


def parse_optional_folder_id(value: str | uuid.UUID | None) -> uuid.UUID | None:
    """Parse a folder reference where absence means root.

    Args:
        value: Raw folder id; None, empty or 'null' mean root.

    Returns:
        Parsed UUID, or None for root.

    Raises:
        ValidationError: If the value is neither a root marker nor an id.
    """
    if value is None or isinstance(value, uuid.UUID):
        return value
    if str(value).strip().lower() in _ROOT_MARKERS:
        return None
    try:
        return uuid.UUID(str(value))
    except ValueError as error:
        raise ValidationError('Invalid folder id') from error


def parse_folder_scope(value: str | uuid.UUID | None) -> FolderScope:
    """Parse a folder filter into a FolderScope.

    Args:
        value: Raw folder id from a query string or body.

    Returns:
        Root scope or a scope for the given folder.
    """
    return FolderScope.of(parse_optional_folder_id(value))
