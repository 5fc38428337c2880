"""Base reconciler: one fetch-match-commit cycle per declared resource"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from vsphere_sync.collectors.property_collector import InventoryObject
from vsphere_sync.errors import FieldExtractionError, ReconcileError
from vsphere_sync.status_sync import NO_MATCH, StatusRecord, sync
from vsphere_sync.store import DeclaredResource, ResourceKey

logger = logging.getLogger(__name__)

DEFAULT_REQUEUE_AFTER = 60


class Phase(str, Enum):
    """Where a resource is in its current reconciliation cycle."""

    IDLE = "Idle"
    FETCHING = "Fetching"
    MATCHING = "Matching"
    COMMITTING = "Committing"


@dataclass(frozen=True)
class ReconcileResult:
    """
    Outcome of a successful cycle.

    requeue_after is None when the resource is gone and should not be
    polled again.
    """

    requeue_after: Optional[float] = None
    matched: bool = False


class BaseReconciler:
    """
    Base class for the per-kind reconcilers.

    Subclasses set the class attributes and implement map_status().
    The store and the accessor are injected; the accessor wraps the one
    InventorySession shared by every reconciler in the process.
    """

    kind: str = ""
    plural: str = ""
    inventory_kind: str = ""
    target_field: str = ""

    def __init__(self, store, accessor, requeue_after: float = DEFAULT_REQUEUE_AFTER):
        """
        Args:
            store: ResourceStore for this kind's custom objects
            accessor: InventoryAccessor bound to the shared session
            requeue_after: seconds until the next poll after a clean cycle
        """
        self.store = store
        self.accessor = accessor
        self.requeue_after = requeue_after
        self._phases: Dict[ResourceKey, Phase] = {}
        self._phase_lock = threading.Lock()

    def map_status(self, obj: InventoryObject) -> StatusRecord:
        raise NotImplementedError

    def phase_of(self, key: ResourceKey) -> Phase:
        with self._phase_lock:
            return self._phases.get(key, Phase.IDLE)

    def _enter(self, key: ResourceKey, phase: Phase):
        with self._phase_lock:
            if phase is Phase.IDLE:
                self._phases.pop(key, None)
            else:
                self._phases[key] = phase
        logger.debug(f"{self.kind} {key}: {phase.value}")

    def target_name(self, resource: DeclaredResource) -> str:
        value = resource.spec.get(self.target_field)
        if not isinstance(value, str) or not value:
            raise FieldExtractionError(f"spec.{self.target_field}", object_name=str(resource.key))
        return value

    def reconcile(self, key: ResourceKey, cancel=None) -> ReconcileResult:
        """
        Run one Idle -> Fetching -> Matching -> Committing -> Idle cycle.

        Returns:
            ReconcileResult with the delay until the next poll

        Raises:
            ReconcileError: retrieval, mapping or commit failed; the status
                is left as it was and the runtime decides when to retry
        """
        try:
            resource = self.store.get(key)
            if resource is None:
                logger.debug(f"{self.kind} {key} no longer exists, not requeueing")
                return ReconcileResult()

            target = self.target_name(resource)
            logger.info(f"received reconcile request for {self.kind} {key} (target '{target}')")

            self._enter(key, Phase.FETCHING)
            objects = self.accessor.list_all(self.inventory_kind, cancel=cancel)

            self._enter(key, Phase.MATCHING)
            status = sync(target, objects, self.map_status)
            if status is NO_MATCH:
                logger.info(f"{self.kind} {key}: no {self.inventory_kind} named '{target}' found, status unchanged")
                return ReconcileResult(requeue_after=self.requeue_after, matched=False)

            self._enter(key, Phase.COMMITTING)
            self.store.replace_status(resource, status)
        except ReconcileError as e:
            logger.warning(f"{self.kind} {key}: {type(e).__name__}: {e}")
            raise
        finally:
            self._enter(key, Phase.IDLE)

        logger.info(f"{self.kind} {key}: status updated from {self.inventory_kind} '{target}'")
        return ReconcileResult(requeue_after=self.requeue_after, matched=True)
