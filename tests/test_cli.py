#!/usr/bin/env python3
"""
测试启动流程: 连通性检查 + 创建隔离策略
"""

import asyncio
import sys
from unittest.mock import patch

import pytest

from conftest import FakeGateway
from kube_workload_guard.cli.main import main, provision, run
from kube_workload_guard.config import GuardSettings
from kube_workload_guard.utils.errors import ConfigurationError


def _settings(**overrides) -> GuardSettings:
    values = dict(
        kubeconfig="~/.kube/config",
        host="0.0.0.0",
        port=8081,
        namespace="demo",
        selector="app=nginx",
    )
    values.update(overrides)
    return GuardSettings(**values)


def test_provision_creates_policy():
    gateway = FakeGateway()

    assert asyncio.run(provision(gateway, _settings())) == 0
    assert ("demo", "isolate-demo") in gateway.policies


def test_provision_is_idempotent_across_restarts():
    gateway = FakeGateway()

    assert asyncio.run(provision(gateway, _settings())) == 0
    assert asyncio.run(provision(gateway, _settings())) == 0
    assert gateway.create_calls == 1


def test_unreachable_api_server_aborts_startup():
    gateway = FakeGateway(version_error="connection refused")

    assert asyncio.run(provision(gateway, _settings())) == 1
    assert gateway.policies == {}


def test_missing_selector_aborts_startup():
    gateway = FakeGateway()

    assert asyncio.run(provision(gateway, _settings(selector=""))) == 1
    assert gateway.create_calls == 0


def test_provisioning_failure_aborts_startup():
    gateway = FakeGateway()
    gateway.create_error = "forbidden"

    assert asyncio.run(provision(gateway, _settings())) == 1


def test_strict_mismatch_aborts_startup():
    gateway = FakeGateway()
    asyncio.run(provision(gateway, _settings()))

    assert asyncio.run(provision(gateway, _settings(selector="app=redis", strict_policy=True))) == 1


def test_invalid_log_level_exits_before_logging_setup(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["kube-workload-guard", "--log-level", "FOO"])

    with patch("kube_workload_guard.cli.main.configure_logging") as mock_logging, \
            pytest.raises(SystemExit) as exc_info:
        main()

    assert exc_info.value.code == 1
    mock_logging.assert_not_called()


def test_run_bounds_api_requests_with_health_timeout():
    with patch("kube_workload_guard.cli.main.KubernetesGateway") as mock_gateway:
        mock_gateway.from_kubeconfig.side_effect = ConfigurationError("no kubeconfig")

        assert run(_settings(timeout=2.5)) == 1

    mock_gateway.from_kubeconfig.assert_called_once_with("~/.kube/config", request_timeout=2.5)
