"""
vCenter Fault Descriptions

Maps vSphere/vmodl fault types seen during login and property retrieval
to short operator-facing messages.
"""

from typing import Optional, Dict, Tuple
import re

VCENTER_FAULT_MESSAGES: Dict[str, str] = {
    'vim.fault.InvalidLogin': 'vCenter rejected the configured username or password.',
    'vim.fault.NotAuthenticated': 'The vCenter session is no longer authenticated. Restart the process to log in again.',
    'vim.fault.NoPermission': 'The vCenter account lacks read access to the requested inventory.',
    'vmodl.fault.ManagedObjectNotFound': 'An inventory object was deleted while it was being read.',
    'vmodl.fault.RequestCanceled': 'The retrieval was cancelled before it completed.',
    'vim.fault.Timedout': 'The vCenter request timed out.',
    'vmodl.fault.InvalidArgument': 'vCenter rejected the requested property set.',
}


def fault_type_of(error: Exception) -> Optional[str]:
    """Return the vSphere fault type name for a pyVmomi fault, if it is one."""
    wsdl_name = getattr(error, '_wsdlName', None)
    if not wsdl_name:
        return None
    for fault_pattern in VCENTER_FAULT_MESSAGES:
        if fault_pattern.rsplit('.', 1)[-1] == wsdl_name:
            return fault_pattern
    return wsdl_name


def describe_fault(error: Exception) -> Tuple[str, Optional[str]]:
    """
    Describe a vCenter exception for logs and error messages.

    Returns:
        Tuple of (friendly_message, known fault type or None)
    """
    error_str = str(error)
    error_type = fault_type_of(error) or type(error).__name__

    for fault_pattern, message in VCENTER_FAULT_MESSAGES.items():
        if fault_pattern in error_type or fault_pattern in error_str:
            return message, fault_pattern

    msg_match = re.search(r"msg\s*=\s*'([^']+)'", error_str)
    if msg_match:
        return msg_match.group(1), None

    return error_str or error_type, None
