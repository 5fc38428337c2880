"""DatastoreInfo reconciler"""

from vsphere_sync.collectors.property_collector import DATASTORE, InventoryObject
from vsphere_sync.errors import FieldExtractionError
from vsphere_sync.status_sync import StatusRecord, compact, optional, required
from .base import BaseReconciler

BYTES_PER_GB = 1024 ** 3


class DatastoreReconciler(BaseReconciler):
    """Mirrors datastore type, capacity and health into DatastoreInfo status"""

    kind = "DatastoreInfo"
    plural = "datastoreinfoes"
    inventory_kind = DATASTORE
    target_field = "datastore"

    def map_status(self, obj: InventoryObject) -> StatusRecord:
        mounts = obj.get("host") or []
        if not hasattr(mounts, "__len__"):
            raise FieldExtractionError("host", reason="not a list", object_name=obj.name)

        return compact({
            "dsType": required(obj, "summary.type"),
            "dsStatus": optional(obj, "overallStatus"),
            "dsCapacityGb": required(obj, "summary.capacity", int) // BYTES_PER_GB,
            "dsFreeSpaceGb": required(obj, "summary.freeSpace", int) // BYTES_PER_GB,
            "dsAccessible": required(obj, "summary.accessible", bool),
            "dsMaintenanceMode": optional(obj, "summary.maintenanceMode"),
            "dsUrl": optional(obj, "summary.url"),
            "dsHostsMounted": len(mounts),
        })
