"""
Status Synchronizer

Matches one declared resource against an InventoryObjectSet and maps the
matched object into a StatusRecord. Pure and synchronous apart from what
the mapper itself does (the node mapper resolves network bindings).
"""

import logging
from typing import Any, Callable, Dict, Optional, Union

from vsphere_sync.collectors.property_collector import InventoryObject, InventoryObjectSet
from vsphere_sync.errors import FieldExtractionError

logger = logging.getLogger(__name__)

StatusRecord = Dict[str, Any]
StatusMapper = Callable[[InventoryObject], StatusRecord]


class _NoMatch:
    """Sentinel: no inventory object carries the declared target name."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "NO_MATCH"


NO_MATCH = _NoMatch()


def find_match(target_name: str, object_set: InventoryObjectSet) -> Optional[InventoryObject]:
    """First object whose name equals target_name exactly, in retrieval order."""
    for obj in object_set:
        if obj.name == target_name:
            return obj
    return None


def sync(target_name: str, object_set: InventoryObjectSet, mapper: StatusMapper) -> Union[StatusRecord, _NoMatch]:
    """
    Build the status for the object named target_name.

    Returns:
        The mapped StatusRecord, or NO_MATCH when nothing carries that name

    Raises:
        FieldExtractionError: a required property is missing or malformed
        UnknownVariantError: a network binding could not be mapped
    """
    obj = find_match(target_name, object_set)
    if obj is None:
        return NO_MATCH
    return mapper(obj)


# =============================================================================
# Field extraction helpers used by the per-kind mappers
# =============================================================================

def _cast(obj: InventoryObject, path: str, value: Any, cast: Callable[[Any], Any]) -> Any:
    if cast is int and (isinstance(value, bool) or not isinstance(value, int)):
        raise FieldExtractionError(path, reason=f"not an integer ({value!r})", object_name=obj.name)
    if cast is bool and not isinstance(value, bool):
        raise FieldExtractionError(path, reason=f"not a boolean ({value!r})", object_name=obj.name)
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise FieldExtractionError(path, reason=f"malformed ({e})", object_name=obj.name) from e


def required(obj: InventoryObject, path: str, cast: Callable[[Any], Any] = str) -> Any:
    """Property that must be present; absence aborts the whole sync."""
    value = obj.get(path)
    if value is None:
        raise FieldExtractionError(path, object_name=obj.name)
    return _cast(obj, path, value, cast)


def optional(obj: InventoryObject, path: str, cast: Callable[[Any], Any] = str, default: Any = None) -> Any:
    """Property vCenter may legitimately leave unset (e.g. guest IP of a powered-off VM)."""
    value = obj.get(path)
    if value is None:
        return default
    return _cast(obj, path, value, cast)


def compact(status: StatusRecord) -> StatusRecord:
    """Drop fields that have no value so they are absent rather than null."""
    return {k: v for k, v in status.items() if v is not None}
