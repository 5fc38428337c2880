#!/usr/bin/env python3
"""
vSphere Status Sync
===================

Runs alongside a Kubernetes cluster and keeps the status of NodeInfo,
HostInfo, DatastoreInfo and FCDInfo resources in step with vCenter.

Requirements:
- Python 3.9+
- pip install -e .

Usage:
1. Export GOVMOMI_URL, GOVMOMI_USERNAME and GOVMOMI_PASSWORD
2. Run: python vsphere-sync.py
3. Statuses refresh every VSPHERE_SYNC_REQUEUE_SECONDS (default 60)
"""

import sys

from vsphere_sync.manager import main

if __name__ == "__main__":
    sys.exit(main())
