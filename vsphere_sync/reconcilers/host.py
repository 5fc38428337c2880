"""HostInfo reconciler - ESXi hosts"""

from vsphere_sync.collectors.property_collector import HOST_SYSTEM, InventoryObject
from vsphere_sync.status_sync import StatusRecord, compact, optional, required
from .base import BaseReconciler

BYTES_PER_MB = 1024 * 1024


class HostReconciler(BaseReconciler):
    """Mirrors ESXi host capacity, usage and runtime state into HostInfo status"""

    kind = "HostInfo"
    plural = "hostinfoes"
    inventory_kind = HOST_SYSTEM
    target_field = "hostname"

    def map_status(self, obj: InventoryObject) -> StatusRecord:
        cpu_mhz = required(obj, "summary.hardware.cpuMhz", int)
        cpu_cores = required(obj, "summary.hardware.numCpuCores", int)
        memory_bytes = required(obj, "summary.hardware.memorySize", int)

        return compact({
            "hostCpuTotalMhz": cpu_mhz * cpu_cores,
            "hostCpuUsedMhz": optional(obj, "summary.quickStats.overallCpuUsage", int),
            "hostMemTotalMb": memory_bytes // BYTES_PER_MB,
            "hostMemUsedMb": optional(obj, "summary.quickStats.overallMemoryUsage", int),
            "hostPowerState": required(obj, "summary.runtime.powerState"),
            "hostConnectionState": required(obj, "summary.runtime.connectionState"),
            "hostInMaintenanceMode": optional(obj, "summary.runtime.inMaintenanceMode", bool),
            "hostVersion": optional(obj, "summary.config.product.version"),
            "hostBuild": optional(obj, "summary.config.product.build"),
            "hostOverallStatus": optional(obj, "overallStatus"),
        })
