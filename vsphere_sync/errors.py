"""
Inventory sync error taxonomy

AuthError is fatal at startup. Everything under ReconcileError is
recoverable and is handed to the controller runtime for its own retry.
"""

from typing import Optional


class InventorySyncError(Exception):
    """Base exception for vCenter inventory sync"""

    def __init__(self, message: str, fault_type: Optional[str] = None):
        self.message = message
        self.fault_type = fault_type
        super().__init__(self.message)


class AuthError(InventorySyncError):
    """Raised when a vCenter session cannot be established"""

    def __init__(self, message: str, endpoint: Optional[str] = None, fault_type: Optional[str] = None):
        super().__init__(message, fault_type=fault_type)
        self.endpoint = endpoint


class ReconcileError(InventorySyncError):
    """Base class for per-cycle failures the runtime should retry"""


class RetrievalError(ReconcileError):
    """Raised when a bulk retrieval or property fetch against vCenter fails"""


class UnknownVariantError(ReconcileError):
    """Raised when a network binding or VLAN spec is of an unmapped kind"""

    def __init__(self, kind: Optional[str], family: str = "network binding"):
        message = f"Unsupported {family} kind: {kind or 'unknown'}"
        super().__init__(message)
        self.kind = kind
        self.family = family


class FieldExtractionError(ReconcileError):
    """Raised when a required inventory property is missing or malformed"""

    def __init__(self, path: str, reason: str = "missing", object_name: Optional[str] = None):
        where = f" on '{object_name}'" if object_name else ""
        super().__init__(f"Property '{path}'{where} is {reason}")
        self.path = path
        self.reason = reason
        self.object_name = object_name


class StatusCommitError(ReconcileError):
    """Raised when the status subresource cannot be written"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
