import os
import threading
import unittest
from unittest import mock

import kopf
import kubernetes

from vsphere_sync import manager
from vsphere_sync.config import load_settings
from vsphere_sync.errors import AuthError, RetrievalError
from vsphere_sync.reconcilers import ReconcileResult
from vsphere_sync.store import ResourceKey

ENV = {
    "GOVMOMI_URL": "https://vc.example.com/sdk",
    "GOVMOMI_USERNAME": "admin",
    "GOVMOMI_PASSWORD": "pw",
}


class PollResourceTests(unittest.TestCase):
    def setUp(self):
        self.key = ResourceKey("default", "node-a-info")
        self.reconciler = mock.MagicMock(kind="NodeInfo")

    def test_reconcile_error_becomes_temporary_error(self):
        self.reconciler.reconcile.side_effect = RetrievalError("vCenter went away")

        with self.assertRaises(kopf.TemporaryError) as ctx:
            manager.poll_resource(self.reconciler, self.key, threading.Event(), backoff=15)

        self.assertEqual(ctx.exception.delay, 15)

    def test_gone_resource_stops_polling(self):
        self.reconciler.reconcile.return_value = ReconcileResult()
        stopped = mock.MagicMock()
        stopped.is_set.return_value = False

        manager.poll_resource(self.reconciler, self.key, stopped, backoff=15)

        self.reconciler.reconcile.assert_called_once_with(self.key, cancel=stopped)
        stopped.wait.assert_not_called()

    def test_waits_requeue_interval_until_stopped(self):
        self.reconciler.reconcile.return_value = ReconcileResult(requeue_after=60, matched=True)
        stopped = mock.MagicMock()
        stopped.is_set.side_effect = [False, False, True]

        manager.poll_resource(self.reconciler, self.key, stopped, backoff=15)

        self.assertEqual(self.reconciler.reconcile.call_count, 2)
        stopped.wait.assert_called_with(60)

    def test_already_stopped_does_nothing(self):
        stopped = threading.Event()
        stopped.set()

        manager.poll_resource(self.reconciler, self.key, stopped, backoff=15)

        self.reconciler.reconcile.assert_not_called()


class BuildTests(unittest.TestCase):
    @mock.patch.dict(os.environ, ENV, clear=True)
    def test_one_reconciler_per_kind_sharing_one_accessor(self):
        reconcilers = manager.build_reconcilers(load_settings(), mock.MagicMock(), api=mock.MagicMock())

        self.assertEqual([r.kind for r in reconcilers], ["NodeInfo", "HostInfo", "DatastoreInfo", "FCDInfo"])
        self.assertEqual(len({id(r.accessor) for r in reconcilers}), 1)
        self.assertEqual(reconcilers[0].store.plural, "nodeinfoes")
        self.assertEqual(reconcilers[3].store.group, "topology.vkubeviewer.com")

    @mock.patch.dict(os.environ, ENV, clear=True)
    def test_registry_built(self):
        settings = load_settings()
        reconcilers = manager.build_reconcilers(settings, mock.MagicMock(), api=mock.MagicMock())

        self.assertIsInstance(manager.build_registry(settings, reconcilers), kopf.OperatorRegistry)


@mock.patch("vsphere_sync.manager.configure_logging")
class MainTests(unittest.TestCase):
    @mock.patch.dict(os.environ, {}, clear=True)
    def test_missing_url_exits_1(self, _logging):
        self.assertEqual(manager.main(), 1)

    @mock.patch.dict(os.environ, ENV, clear=True)
    @mock.patch("vsphere_sync.manager.kopf.run")
    @mock.patch("vsphere_sync.manager.InventorySession.establish")
    def test_login_failure_exits_1(self, establish, run, _logging):
        establish.side_effect = AuthError("Invalid vCenter credentials", endpoint="https://vc.example.com:443/sdk")

        self.assertEqual(manager.main(), 1)
        run.assert_not_called()

    @mock.patch.dict(os.environ, ENV, clear=True)
    @mock.patch("vsphere_sync.manager.kopf.run")
    @mock.patch("vsphere_sync.manager.load_kube_config")
    @mock.patch("vsphere_sync.manager.InventorySession.establish")
    def test_kube_config_failure_exits_1(self, establish, load_kube_config, run, _logging):
        load_kube_config.side_effect = kubernetes.config.ConfigException("no kubeconfig")

        self.assertEqual(manager.main(), 1)
        run.assert_not_called()

    @mock.patch.dict(os.environ, dict(ENV, VSPHERE_SYNC_NAMESPACE="vkube"), clear=True)
    @mock.patch("vsphere_sync.manager.kopf.run")
    @mock.patch("vsphere_sync.manager.load_kube_config")
    @mock.patch("vsphere_sync.manager.InventorySession.establish")
    def test_runs_kopf_in_namespace(self, establish, _load_kube_config, run, _logging):
        self.assertEqual(manager.main(), 0)

        kwargs = run.call_args.kwargs
        self.assertFalse(kwargs["clusterwide"])
        self.assertEqual(kwargs["namespaces"], ["vkube"])
        self.assertIsInstance(kwargs["registry"], kopf.OperatorRegistry)
        endpoint = establish.call_args.args[0]
        self.assertEqual(endpoint.host, "vc.example.com")
        self.assertEqual(establish.call_args.kwargs["cache"].directory.name, "sessions")

    @mock.patch.dict(os.environ, dict(ENV, VSPHERE_SYNC_SESSION_CACHE_DIR=""), clear=True)
    @mock.patch("vsphere_sync.manager.kopf.run")
    @mock.patch("vsphere_sync.manager.load_kube_config")
    @mock.patch("vsphere_sync.manager.InventorySession.establish")
    def test_empty_cache_dir_disables_session_cache(self, establish, _load_kube_config, _run, _logging):
        self.assertEqual(manager.main(), 0)

        self.assertIsNone(establish.call_args.kwargs["cache"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
