"""vCenter inventory collectors"""

from .property_collector import (
    DATASTORE,
    FIRST_CLASS_DISK,
    HOST_SYSTEM,
    VIRTUAL_MACHINE,
    InventoryAccessor,
    InventoryObject,
    InventoryObjectSet,
)
from .network_resolver import DISTRIBUTED, STANDARD, NetworkBinding, NetworkResolver

__all__ = [
    'DATASTORE',
    'FIRST_CLASS_DISK',
    'HOST_SYSTEM',
    'VIRTUAL_MACHINE',
    'InventoryAccessor',
    'InventoryObject',
    'InventoryObjectSet',
    'DISTRIBUTED',
    'STANDARD',
    'NetworkBinding',
    'NetworkResolver',
]
