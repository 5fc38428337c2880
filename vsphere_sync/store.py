"""
Declared resource store

Thin wrapper over the Kubernetes CustomObjectsApi for the two calls the
reconcilers need: fetch one custom object by key, and replace its status
subresource.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from kubernetes.client import CustomObjectsApi
from kubernetes.client.exceptions import ApiException

from vsphere_sync.errors import RetrievalError, StatusCommitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceKey:
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class DeclaredResource:
    """A custom object as read from the API server."""

    key: ResourceKey
    spec: Dict[str, Any] = field(default_factory=dict)
    status: Dict[str, Any] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def resource_version(self) -> Optional[str]:
        return self.body.get("metadata", {}).get("resourceVersion")


class ResourceStore:
    """Custom object access for one group/version/plural."""

    def __init__(self, group: str, version: str, plural: str, api: Optional[CustomObjectsApi] = None):
        self.group = group
        self.version = version
        self.plural = plural
        self.api = api if api is not None else CustomObjectsApi()

    def get(self, key: ResourceKey) -> Optional[DeclaredResource]:
        """
        Fetch a custom object, or None if it no longer exists.

        Raises:
            RetrievalError: any API error other than 404
        """
        try:
            body = self.api.get_namespaced_custom_object(
                group=self.group,
                version=self.version,
                namespace=key.namespace,
                plural=self.plural,
                name=key.name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise RetrievalError(f"Unable to fetch {self.plural} {key}: {e.status} {e.reason}") from e

        return DeclaredResource(
            key=key,
            spec=dict(body.get("spec") or {}),
            status=dict(body.get("status") or {}),
            body=body,
        )

    def replace_status(self, resource: DeclaredResource, status: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overwrite the whole status subresource.

        The object's resourceVersion is sent along, so a concurrent writer
        causes a 409 instead of a lost update.

        Raises:
            StatusCommitError: the API server rejected the write
        """
        body = copy.deepcopy(resource.body)
        body["status"] = dict(status)
        try:
            return self.api.replace_namespaced_custom_object_status(
                group=self.group,
                version=self.version,
                namespace=resource.key.namespace,
                plural=self.plural,
                name=resource.key.name,
                body=body,
            )
        except ApiException as e:
            raise StatusCommitError(
                f"Unable to update {self.plural} {resource.key} status: {e.status} {e.reason}",
                status_code=e.status,
            ) from e
