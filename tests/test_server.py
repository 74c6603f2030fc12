#!/usr/bin/env python3
"""
测试 HTTP 接口
"""

import asyncio

from fastapi.testclient import TestClient

from conftest import FakeGateway, snapshot
from kube_workload_guard.collectors.health_aggregator import HealthAggregator
from kube_workload_guard.server import create_app


def _client(gateway: FakeGateway, **kwargs) -> TestClient:
    return TestClient(create_app(HealthAggregator(gateway, **kwargs), gateway))


def test_healthz():
    response = _client(FakeGateway()).get("/healthz")

    assert response.status_code == 200
    assert response.text == "ok"


def test_deployment_health_all_healthy():
    response = _client(FakeGateway([snapshot("web", 2, 2, 2)])).get("/deployment-health")

    assert response.status_code == 200
    assert response.text == "All deployments are healthy"
    assert response.headers["content-type"].startswith("text/plain")


def test_deployment_health_scenario(scenario_workloads):
    """3 个 Deployment, 返回 2 个不健康记录"""
    response = _client(FakeGateway(scenario_workloads)).get("/deployment-health")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    body = sorted(response.json(), key=lambda r: r["name"])
    assert body == [
        {
            "name": "api",
            "namespace": "default",
            "desiredReplicas": 4,
            "currentReplicas": 3,
            "availableReplicas": 3,
        },
        {
            "name": "worker",
            "namespace": "jobs",
            "desiredReplicas": 2,
            "currentReplicas": 2,
            "availableReplicas": 1,
        },
    ]


def test_deployment_health_configuration_fault_has_marker():
    response = _client(FakeGateway([snapshot("broken", None, 1, 1)])).get("/deployment-health")

    assert response.status_code == 200
    [record] = response.json()
    assert record["desiredReplicas"] == 0
    assert record["error"] == "desired replicas not set"


def test_deployment_health_listing_failure():
    response = _client(FakeGateway(list_error="connection refused")).get("/deployment-health")

    assert response.status_code == 500
    assert response.text == "Error listing deployments: connection refused"


def test_deployment_health_timeout():
    async def slow_probe(s):
        await asyncio.sleep(5)
        return s

    client = _client(FakeGateway([snapshot("web", 1, 1, 1)]), probe=slow_probe, timeout=0.05)
    response = client.get("/deployment-health")

    assert response.status_code == 504


def test_kube_api_health_reachable():
    response = _client(FakeGateway()).get("/kube-api-health")

    assert response.status_code == 200
    assert response.text == "Kubernetes API server is reachable"


def test_kube_api_health_unreachable():
    response = _client(FakeGateway(version_error="dial tcp: i/o timeout")).get("/kube-api-health")

    assert response.status_code == 503
    assert response.text.startswith("Kubernetes API server is unreachable")
    assert "dial tcp: i/o timeout" in response.text


def test_each_request_is_a_fresh_snapshot():
    gateway = FakeGateway([snapshot("web", 2, 2, 2)])
    client = _client(gateway)

    assert client.get("/deployment-health").text == "All deployments are healthy"

    gateway.workloads.append(snapshot("api", 2, 0, 0))
    assert [r["name"] for r in client.get("/deployment-health").json()] == ["api"]
    assert gateway.list_calls == 2
