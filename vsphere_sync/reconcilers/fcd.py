"""FCDInfo reconciler - first-class disks backing persistent volumes"""

from vsphere_sync.collectors.property_collector import FIRST_CLASS_DISK, InventoryObject
from vsphere_sync.status_sync import StatusRecord, compact, optional, required
from .base import BaseReconciler


class FCDReconciler(BaseReconciler):
    """
    Mirrors a first-class disk into FCDInfo status.

    The vSphere CSI driver names each disk after its PersistentVolume, so
    spec.pvId is matched against the disk name.
    """

    kind = "FCDInfo"
    plural = "fcdinfoes"
    inventory_kind = FIRST_CLASS_DISK
    target_field = "pvId"

    def map_status(self, obj: InventoryObject) -> StatusRecord:
        return compact({
            "fcdId": required(obj, "config.id.id"),
            "sizeMb": required(obj, "config.capacityInMB", int),
            "filePath": optional(obj, "config.backing.filePath"),
            "provisioningType": optional(obj, "config.backing.provisioningType"),
            "datastore": required(obj, "datastore.name"),
        })
