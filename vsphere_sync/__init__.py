"""
vSphere Status Sync - mirrors vCenter inventory into Kubernetes resource status.

Keeps the status of four custom resource kinds up to date:
- NodeInfo (virtual machines)
- HostInfo (ESXi hosts)
- DatastoreInfo (datastores)
- FCDInfo (first-class disks)
"""

__version__ = "1.0.0"
