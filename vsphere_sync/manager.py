"""
vSphere Status Sync - manager entry point

Logs in to vCenter once, builds the four reconcilers around that shared
session, and hands them to kopf. Each custom object gets a sync daemon
that runs a reconcile cycle, then sleeps for the requeue interval.

Exit codes:
- 0: clean shutdown
- 1: vCenter login or Kubernetes configuration failed at startup
"""

import logging
from typing import List, Optional

import kopf
import kubernetes
from kubernetes.client import CustomObjectsApi

from vsphere_sync import __version__
from vsphere_sync.collectors import InventoryAccessor, NetworkResolver
from vsphere_sync.config import Settings, load_settings
from vsphere_sync.errors import AuthError, ReconcileError
from vsphere_sync.reconcilers import (
    BaseReconciler,
    DatastoreReconciler,
    FCDReconciler,
    HostReconciler,
    NodeReconciler,
)
from vsphere_sync.session import Endpoint, InventorySession, SessionCache
from vsphere_sync.store import ResourceKey, ResourceStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT
    )


def load_kube_config():
    """In-cluster service account first, then the local kubeconfig."""
    try:
        kubernetes.config.load_incluster_config()
        logger.info("Loaded in-cluster kube-config")
    except kubernetes.config.ConfigException:
        kubernetes.config.load_kube_config()
        logger.info("Loaded local kube-config")


def build_reconcilers(settings: Settings, session, api: Optional[CustomObjectsApi] = None) -> List[BaseReconciler]:
    """One reconciler per kind, all sharing the same vCenter session."""
    accessor = InventoryAccessor(session, page_size=settings.page_size)
    resolver = NetworkResolver(session)
    requeue = settings.requeue_after_seconds

    def store(plural: str) -> ResourceStore:
        return ResourceStore(settings.crd_group, settings.crd_version, plural, api=api)

    return [
        NodeReconciler(store(NodeReconciler.plural), accessor, resolver, requeue_after=requeue),
        HostReconciler(store(HostReconciler.plural), accessor, requeue_after=requeue),
        DatastoreReconciler(store(DatastoreReconciler.plural), accessor, requeue_after=requeue),
        FCDReconciler(store(FCDReconciler.plural), accessor, requeue_after=requeue),
    ]


def poll_resource(reconciler: BaseReconciler, key: ResourceKey, stopped, backoff: float,
                  event_logger: Optional[logging.Logger] = None):
    """
    Body of a per-resource sync daemon.

    Reconciles, then waits on the stop flag for the requeue interval.
    A ReconcileError becomes a kopf.TemporaryError so kopf restarts the
    daemon after its own backoff.
    """
    event_logger = event_logger or logger
    while not stopped.is_set():
        try:
            result = reconciler.reconcile(key, cancel=stopped)
        except ReconcileError as e:
            event_logger.warning(f"{reconciler.kind} sync failed: {e}")
            raise kopf.TemporaryError(str(e), delay=backoff) from e

        if result.requeue_after is None:
            return
        stopped.wait(result.requeue_after)


def register_daemon(registry: kopf.OperatorRegistry, reconciler: BaseReconciler, settings: Settings):
    @kopf.daemon(
        group=settings.crd_group,
        version=settings.crd_version,
        plural=reconciler.plural,
        id=f"sync-{reconciler.plural}",
        backoff=settings.error_backoff_seconds,
        registry=registry,
    )
    def sync_daemon(name, namespace, stopped, logger, **_):
        poll_resource(
            reconciler,
            ResourceKey(namespace=namespace, name=name),
            stopped,
            settings.error_backoff_seconds,
            event_logger=logger,
        )

    return sync_daemon


def build_registry(settings: Settings, reconcilers: List[BaseReconciler]) -> kopf.OperatorRegistry:
    registry = kopf.OperatorRegistry()
    for reconciler in reconcilers:
        register_daemon(registry, reconciler, settings)
    return registry


def main() -> int:
    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info(f"vSphere Status Sync v{__version__} starting...")

    try:
        endpoint = Endpoint.parse(
            settings.govmomi_url,
            username=settings.govmomi_username,
            password=settings.govmomi_password,
        )
        session = InventorySession.establish(
            endpoint,
            insecure=settings.govmomi_insecure,
            timeout=settings.connect_timeout_seconds,
            cache=SessionCache(settings.session_cache_dir) if settings.session_cache_dir else None,
        )
    except AuthError as e:
        logger.critical(f"unable to get login session to vSphere: {e}")
        return 1

    try:
        load_kube_config()
    except kubernetes.config.ConfigException as e:
        logger.critical(f"Failed to load Kubernetes configuration: {e}")
        return 1

    registry = build_registry(settings, build_reconcilers(settings, session))

    logger.info("starting manager")
    kopf.run(
        registry=registry,
        clusterwide=settings.namespace is None,
        namespaces=[settings.namespace] if settings.namespace else (),
        liveness_endpoint=settings.liveness_endpoint,
    )
    return 0
