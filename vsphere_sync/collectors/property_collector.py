"""
vCenter PropertyCollector-Based Inventory Accessor

Retrieves a point-in-time snapshot of every inventory object of one kind
in a single batched PropertyCollector call over a ContainerView rooted at
the inventory root.

Each call:
- creates its own ContainerView and destroys it on every exit path
- pages through RetrievePropertiesEx results
- is all-or-nothing: any fault fails the whole call
- caches nothing between calls
"""

import http.client
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pyVmomi import vim, vmodl

from vsphere_sync.collectors.vcenter_errors import describe_fault
from vsphere_sync.errors import RetrievalError

logger = logging.getLogger(__name__)

VIRTUAL_MACHINE = "VirtualMachine"
HOST_SYSTEM = "HostSystem"
DATASTORE = "Datastore"
FIRST_CLASS_DISK = "FirstClassDisk"


@dataclass(frozen=True)
class InventoryObject:
    """One inventory object: its MoRef id, its name and a flat property bag."""

    moref: str
    name: str
    props: Dict[str, Any] = field(default_factory=dict)

    def get(self, path: str, default: Any = None) -> Any:
        return self.props.get(path, default)


InventoryObjectSet = Tuple[InventoryObject, ...]


@dataclass(frozen=True)
class KindSpec:
    """Which managed object type to view and which properties to pull."""

    obj_type: Any
    path_set: Tuple[str, ...]
    name_path: str = "name"


# =============================================================================
# Property Specifications
# =============================================================================

def _get_vm_properties() -> List[str]:
    return [
        "name",
        "summary.config.numCpu",
        "summary.config.cpuReservation",
        "summary.config.memorySizeMB",
        "summary.config.memoryReservation",
        "summary.config.vmPathName",
        "summary.guest.guestId",
        "summary.guest.hwVersion",
        "summary.guest.ipAddress",
        "summary.runtime.powerState",
        "network",                            # List of Network / DVPG references
    ]


def _get_host_properties() -> List[str]:
    return [
        "name",
        "summary.hardware.cpuMhz",
        "summary.hardware.numCpuCores",
        "summary.hardware.memorySize",        # Bytes
        "summary.quickStats.overallCpuUsage", # MHz
        "summary.quickStats.overallMemoryUsage",  # MB
        "summary.runtime.powerState",
        "summary.runtime.connectionState",
        "summary.runtime.inMaintenanceMode",
        "summary.config.product.version",
        "summary.config.product.build",
        "overallStatus",
    ]


def _get_datastore_properties() -> List[str]:
    return [
        "name",
        "summary.type",
        "summary.capacity",
        "summary.freeSpace",
        "summary.accessible",
        "summary.maintenanceMode",
        "summary.url",
        "overallStatus",
        "host",                               # DatastoreHostMount[]
    ]


INVENTORY_KINDS: Dict[str, KindSpec] = {
    VIRTUAL_MACHINE: KindSpec(vim.VirtualMachine, tuple(_get_vm_properties())),
    HOST_SYSTEM: KindSpec(vim.HostSystem, tuple(_get_host_properties())),
    DATASTORE: KindSpec(vim.Datastore, tuple(_get_datastore_properties())),
}


# =============================================================================
# Core Helpers
# =============================================================================

def _parse_object_content(oc) -> Tuple[Any, Dict[str, Any]]:
    """
    Parse PropertyCollector ObjectContent into (obj, props) tuple.

    Args:
        oc: vim.PropertyCollector.ObjectContent

    Returns:
        Tuple of (vim_object, {property_name: property_value})
    """
    obj = oc.obj
    props = {p.name: p.val for p in (oc.propSet or [])}
    return obj, props


def _build_filter_spec(view, spec: KindSpec) -> vim.PropertyCollector.FilterSpec:
    traversal_spec = vim.PropertyCollector.TraversalSpec(
        name="viewTraversal",
        type=vim.view.ContainerView,
        path="view",
        skip=False
    )
    obj_spec = vim.PropertyCollector.ObjectSpec(
        obj=view,
        selectSet=[traversal_spec],
        skip=True
    )
    prop_spec = vim.PropertyCollector.PropertySpec(
        type=spec.obj_type,
        pathSet=list(spec.path_set),
        all=False
    )
    return vim.PropertyCollector.FilterSpec(objectSet=[obj_spec], propSet=[prop_spec])


def _is_cancelled(cancel) -> bool:
    return cancel is not None and cancel.is_set()


def _retrieval_error(what: str, error: Exception) -> RetrievalError:
    friendly, fault_type = describe_fault(error)
    return RetrievalError(f"Unable to retrieve {what}: {friendly}", fault_type=fault_type)


@contextmanager
def scoped_container_view(content, obj_types: List[Any]) -> Iterator[Any]:
    """
    Create a recursive ContainerView at the inventory root and destroy it
    when the block exits, however it exits.
    """
    view = content.viewManager.CreateContainerView(
        container=content.rootFolder,
        type=obj_types,
        recursive=True
    )
    logger.debug(f"Created ContainerView {getattr(view, '_moId', view)}")
    try:
        yield view
    finally:
        try:
            view.Destroy()
            logger.debug(f"Destroyed ContainerView {getattr(view, '_moId', view)}")
        except (vmodl.MethodFault, OSError, http.client.HTTPException) as e:
            logger.warning(f"Failed to destroy ContainerView: {e}")


def retrieve_paged(pc, filter_spec, page_size: int = 1000, cancel=None) -> List[Any]:
    """
    Run RetrievePropertiesEx and follow continuation tokens to the end.

    Checks the cancel token between pages; an abandoned token is released
    on the server with CancelRetrievePropertiesEx.
    """
    options = vim.PropertyCollector.RetrieveOptions(maxObjects=page_size)
    result = pc.RetrievePropertiesEx(specSet=[filter_spec], options=options)
    if result is None:
        return []

    objects = list(result.objects or [])
    token = result.token

    while token:
        if _is_cancelled(cancel):
            try:
                pc.CancelRetrievePropertiesEx(token=token)
            except (vmodl.MethodFault, OSError, http.client.HTTPException) as e:
                logger.debug(f"Ignoring error while cancelling retrieval: {e}")
            raise RetrievalError("Retrieval cancelled", fault_type="vmodl.fault.RequestCanceled")
        result = pc.ContinueRetrievePropertiesEx(token=token)
        objects.extend(result.objects or [])
        token = result.token

    return objects


def fetch_object_properties(pc, obj, obj_type, path_set: List[str]) -> Dict[str, Any]:
    """Fetch a property bag for a single managed object reference."""
    obj_spec = vmodl.query.PropertyCollector.ObjectSpec(obj=obj, skip=False)
    prop_spec = vmodl.query.PropertyCollector.PropertySpec(
        type=obj_type,
        pathSet=list(path_set),
        all=False
    )
    filter_spec = vmodl.query.PropertyCollector.FilterSpec(
        objectSet=[obj_spec],
        propSet=[prop_spec]
    )
    try:
        results = pc.RetrieveContents([filter_spec]) or []
    except vmodl.MethodFault as e:
        raise _retrieval_error(f"properties of {getattr(obj, '_moId', obj)}", e) from e
    except (OSError, http.client.HTTPException) as e:
        raise RetrievalError(f"Unable to retrieve properties of {getattr(obj, '_moId', obj)}: {e}") from e

    if not results:
        raise RetrievalError(f"Object {getattr(obj, '_moId', obj)} returned no properties")
    _, props = _parse_object_content(results[0])
    return props


def _resolve_path(root, path: str) -> Any:
    value = root
    for attr in path.split("."):
        value = getattr(value, attr, None)
        if value is None:
            return None
    return value


def _to_inventory_object(oc, spec: KindSpec, kind: str) -> InventoryObject:
    obj, props = _parse_object_content(oc)
    moref = str(getattr(obj, "_moId", obj))

    missing = getattr(oc, "missingSet", None) or []
    if missing:
        fault = getattr(missing[0], "fault", None)
        friendly = describe_fault(fault)[0] if fault is not None else "property not readable"
        raise RetrievalError(f"{kind} {moref}: {missing[0].path}: {friendly}")

    name = props.get(spec.name_path)
    if not isinstance(name, str):
        raise RetrievalError(f"{kind} {moref} has no readable {spec.name_path}")
    return InventoryObject(moref=moref, name=name, props=props)


# =============================================================================
# Inventory Accessor
# =============================================================================

class InventoryAccessor:
    """Produces point-in-time InventoryObjectSets from a shared session."""

    def __init__(self, session, page_size: int = 1000):
        self.session = session
        self.page_size = page_size

    def list_all(self, kind: str, cancel=None) -> InventoryObjectSet:
        """
        Retrieve every inventory object of one kind.

        Args:
            kind: one of VIRTUAL_MACHINE, HOST_SYSTEM, DATASTORE, FIRST_CLASS_DISK
            cancel: optional token with is_set(); checked between pages

        Raises:
            RetrievalError: on any fault, transport error or cancellation
        """
        if kind == FIRST_CLASS_DISK:
            return self._list_first_class_disks(cancel)

        spec = INVENTORY_KINDS.get(kind)
        if spec is None:
            raise ValueError(f"Unknown inventory kind: {kind}")

        start_time = time.time()
        content = self.session.content
        try:
            with scoped_container_view(content, [spec.obj_type]) as view:
                contents = retrieve_paged(
                    content.propertyCollector,
                    _build_filter_spec(view, spec),
                    page_size=self.page_size,
                    cancel=cancel,
                )
        except vmodl.MethodFault as e:
            raise _retrieval_error(f"{kind} inventory", e) from e
        except (OSError, http.client.HTTPException) as e:
            raise RetrievalError(f"Unable to retrieve {kind} inventory: {e}") from e

        objects = tuple(_to_inventory_object(oc, spec, kind) for oc in contents)
        fetch_time_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"PropertyCollector fetched {len(objects)} {kind} objects in {fetch_time_ms}ms")
        return objects

    def _list_first_class_disks(self, cancel) -> InventoryObjectSet:
        """
        First-class disks are not managed entities, so they are enumerated
        per datastore through the VStorageObjectManager.
        """
        start_time = time.time()
        content = self.session.content
        vsom = content.vStorageObjectManager
        ds_spec = KindSpec(vim.Datastore, ("name",))
        disks: List[InventoryObject] = []

        try:
            with scoped_container_view(content, [vim.Datastore]) as view:
                datastores = retrieve_paged(
                    content.propertyCollector,
                    _build_filter_spec(view, ds_spec),
                    page_size=self.page_size,
                    cancel=cancel,
                )
                for oc in datastores:
                    if _is_cancelled(cancel):
                        raise RetrievalError("Retrieval cancelled", fault_type="vmodl.fault.RequestCanceled")
                    ds = _to_inventory_object(oc, ds_spec, DATASTORE)
                    for disk_id in vsom.ListVStorageObject(datastore=oc.obj) or []:
                        disk = vsom.RetrieveVStorageObject(id=disk_id, datastore=oc.obj)
                        disks.append(_disk_to_inventory_object(disk, ds))
        except vmodl.MethodFault as e:
            raise _retrieval_error(f"{FIRST_CLASS_DISK} inventory", e) from e
        except (OSError, http.client.HTTPException) as e:
            raise RetrievalError(f"Unable to retrieve {FIRST_CLASS_DISK} inventory: {e}") from e

        fetch_time_ms = int((time.time() - start_time) * 1000)
        logger.debug(f"VStorageObjectManager returned {len(disks)} disks in {fetch_time_ms}ms")
        return tuple(disks)


def _disk_to_inventory_object(disk, datastore: InventoryObject) -> InventoryObject:
    """Flatten a vim.vslm.VStorageObject into the same shape as collector results."""
    disk_id = _resolve_path(disk, "config.id.id")
    name = _resolve_path(disk, "config.name")
    if not isinstance(name, str):
        raise RetrievalError(f"{FIRST_CLASS_DISK} {disk_id} has no readable config.name")

    props = {
        "config.id.id": disk_id,
        "config.name": name,
        "config.capacityInMB": _resolve_path(disk, "config.capacityInMB"),
        "config.backing.filePath": _resolve_path(disk, "config.backing.filePath"),
        "config.backing.provisioningType": _resolve_path(disk, "config.backing.provisioningType"),
        "datastore.name": datastore.name,
    }
    return InventoryObject(moref=str(disk_id), name=name, props=props)
