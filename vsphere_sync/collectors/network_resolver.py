"""
Network Binding Resolver

A VM's network reference is polymorphic: it is either a standard vSwitch
port group (vim.Network) or a distributed port group
(vim.dvs.DistributedVirtualPortgroup). Distributed port groups carry a
VLAN spec that is polymorphic in turn:

- VmwareDistributedVirtualSwitchVlanIdSpec  - single VLAN id (mapped)
- VmwareDistributedVirtualSwitchTrunkVlanSpec - trunk ranges (not mapped)
- VmwareDistributedVirtualSwitchPvlanSpec   - private VLAN (not mapped)

Both levels are resolved through lookup tables keyed by the vSphere type
name. Anything not in a table raises UnknownVariantError.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

from pyVmomi import vim

from vsphere_sync.collectors.property_collector import fetch_object_properties
from vsphere_sync.errors import FieldExtractionError, UnknownVariantError

logger = logging.getLogger(__name__)

STANDARD = "Standard"
DISTRIBUTED = "Distributed"


@dataclass(frozen=True)
class NetworkBinding:
    switch_type: str
    name: str
    overall_status: str
    vlan_id: Optional[int] = None


@dataclass(frozen=True)
class BindingKind:
    switch_type: str
    obj_type: Any
    path_set: Tuple[str, ...]
    extract: Callable[[Dict[str, Any]], NetworkBinding]


def kind_of(obj) -> Optional[str]:
    """vSphere type name of a managed object reference or data object."""
    if obj is None:
        return None
    return getattr(obj, "_wsdlName", None) or type(obj).__name__.rsplit(".", 1)[-1]


def _require(props: Dict[str, Any], path: str):
    value = props.get(path)
    if value is None:
        raise FieldExtractionError(path, object_name=props.get("name"))
    return value


# =============================================================================
# VLAN spec variants
# =============================================================================

def _vlan_id_spec(vlan) -> int:
    vlan_id = getattr(vlan, "vlanId", None)
    if isinstance(vlan_id, bool) or not isinstance(vlan_id, int):
        raise FieldExtractionError("config.defaultPortConfig.vlan.vlanId", reason=f"not an integer ({vlan_id!r})")
    return vlan_id


VLAN_KINDS: Dict[str, Callable[[Any], int]] = {
    "VmwareDistributedVirtualSwitchVlanIdSpec": _vlan_id_spec,
}


def resolve_vlan_id(default_port_config) -> int:
    """
    Extract the single VLAN id from a DVPG defaultPortConfig.

    Raises:
        FieldExtractionError: no port config or no VLAN spec
        UnknownVariantError: trunk, private VLAN or any other VLAN spec kind
    """
    if default_port_config is None:
        raise FieldExtractionError("config.defaultPortConfig")

    vlan = getattr(default_port_config, "vlan", None)
    if vlan is None:
        raise FieldExtractionError("config.defaultPortConfig.vlan")

    vlan_kind = kind_of(vlan)
    extract = VLAN_KINDS.get(vlan_kind)
    if extract is None:
        raise UnknownVariantError(vlan_kind, family="VLAN spec")
    return extract(vlan)


# =============================================================================
# Network binding variants
# =============================================================================

def _standard_binding(props: Dict[str, Any]) -> NetworkBinding:
    return NetworkBinding(
        switch_type=STANDARD,
        name=str(_require(props, "name")),
        overall_status=str(_require(props, "overallStatus")),
    )


def _distributed_binding(props: Dict[str, Any]) -> NetworkBinding:
    return NetworkBinding(
        switch_type=DISTRIBUTED,
        name=str(_require(props, "name")),
        overall_status=str(_require(props, "overallStatus")),
        vlan_id=resolve_vlan_id(props.get("config.defaultPortConfig")),
    )


BINDING_KINDS: Dict[str, BindingKind] = {
    "Network": BindingKind(
        STANDARD, vim.Network, ("name", "overallStatus"), _standard_binding
    ),
    "DistributedVirtualPortgroup": BindingKind(
        DISTRIBUTED,
        vim.dvs.DistributedVirtualPortgroup,
        ("name", "overallStatus", "config.defaultPortConfig"),
        _distributed_binding,
    ),
}


class NetworkResolver:
    """Resolves network references to NetworkBindings over a shared session."""

    def __init__(self, session):
        self.session = session

    def resolve(self, ref) -> NetworkBinding:
        """
        Determine the binding variant of a network reference and extract
        its fields.

        Raises:
            UnknownVariantError: unmapped network or VLAN kind
            FieldExtractionError: required property missing
            RetrievalError: the property fetch itself failed
        """
        ref_kind = kind_of(ref)
        binding_kind = BINDING_KINDS.get(ref_kind)
        if binding_kind is None:
            raise UnknownVariantError(ref_kind)

        props = fetch_object_properties(
            self.session.property_collector,
            ref,
            binding_kind.obj_type,
            list(binding_kind.path_set),
        )
        binding = binding_kind.extract(props)
        logger.debug(f"Resolved {ref_kind} {getattr(ref, '_moId', ref)} -> {binding}")
        return binding
