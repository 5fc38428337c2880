"""NodeInfo reconciler - virtual machines"""

from typing import Optional

from vsphere_sync.collectors.network_resolver import NetworkBinding
from vsphere_sync.collectors.property_collector import VIRTUAL_MACHINE, InventoryObject
from vsphere_sync.status_sync import StatusRecord, compact, optional, required
from .base import BaseReconciler, DEFAULT_REQUEUE_AFTER


def network_status(binding: NetworkBinding) -> StatusRecord:
    """Status fields contributed by a resolved network binding."""
    return compact({
        "switchType": binding.switch_type,
        "netName": binding.name,
        "netOverallStatus": binding.overall_status,
        "vlanId": binding.vlan_id,
    })


class NodeReconciler(BaseReconciler):
    """Mirrors a VM's summary and its network binding into NodeInfo status"""

    kind = "NodeInfo"
    plural = "nodeinfoes"
    inventory_kind = VIRTUAL_MACHINE
    target_field = "nodename"

    def __init__(self, store, accessor, resolver, requeue_after: float = DEFAULT_REQUEUE_AFTER):
        super().__init__(store, accessor, requeue_after=requeue_after)
        self.resolver = resolver

    def map_status(self, obj: InventoryObject) -> StatusRecord:
        status = compact({
            "vmGuestId": optional(obj, "summary.guest.guestId"),
            "vmTotalCpu": required(obj, "summary.config.numCpu", int),
            "vmResvdCpu": optional(obj, "summary.config.cpuReservation", int),
            "vmTotalMem": required(obj, "summary.config.memorySizeMB", int),
            "vmResvdMem": optional(obj, "summary.config.memoryReservation", int),
            "vmPowerState": required(obj, "summary.runtime.powerState"),
            "vmHwVersion": optional(obj, "summary.guest.hwVersion"),
            "vmIpAddress": optional(obj, "summary.guest.ipAddress"),
            "pathToVm": optional(obj, "summary.config.vmPathName"),
        })

        # Only one network is reported; with several, the last one wins.
        binding: Optional[NetworkBinding] = None
        for ref in obj.get("network") or []:
            binding = self.resolver.resolve(ref)
        if binding is not None:
            status.update(network_status(binding))
        return status
