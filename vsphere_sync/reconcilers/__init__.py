"""Per-kind reconcilers for vSphere Status Sync"""

from .base import BaseReconciler, Phase, ReconcileResult
from .node import NodeReconciler
from .host import HostReconciler
from .datastore import DatastoreReconciler
from .fcd import FCDReconciler

__all__ = [
    'BaseReconciler',
    'Phase',
    'ReconcileResult',
    'NodeReconciler',
    'HostReconciler',
    'DatastoreReconciler',
    'FCDReconciler',
]
