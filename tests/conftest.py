"""
测试公共组件 - 内存版集群 API
"""

import asyncio
import os
import sys
from typing import Dict, List, Optional, Tuple

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kube_workload_guard.collectors.k8s_client import failed, ok
from kube_workload_guard.collectors.models import (
    GatewayStatus,
    IsolationPolicy,
    WorkloadSnapshot,
)


class FakeGateway:
    """内存版集群 API

    每个操作都会让出一次事件循环, 以便测试并发交错
    """

    def __init__(
        self,
        workloads: Optional[List[WorkloadSnapshot]] = None,
        list_error: Optional[str] = None,
        version: str = "v1.29.0-fake",
        version_error: Optional[str] = None,
    ):
        self.workloads = list(workloads or [])
        self.list_error = list_error
        self.version = version
        self.version_error = version_error
        self.get_error: Optional[str] = None
        self.create_error: Optional[str] = None
        self.policies: Dict[Tuple[str, str], Dict] = {}
        self.list_calls = 0
        self.create_calls = 0

    async def list_workloads(self, namespace: Optional[str] = None) -> Dict:
        self.list_calls += 1
        await asyncio.sleep(0)
        if self.list_error:
            return failed(GatewayStatus.ERROR, self.list_error)
        return ok([w for w in self.workloads if namespace is None or w.namespace == namespace])

    async def get_policy(self, namespace: str, name: str) -> Dict:
        await asyncio.sleep(0)
        if self.get_error:
            return failed(GatewayStatus.ERROR, self.get_error)
        manifest = self.policies.get((namespace, name))
        if manifest is None:
            return failed(GatewayStatus.NOT_FOUND, "Not Found")
        return ok(manifest)

    async def create_policy(self, policy: IsolationPolicy) -> Dict:
        self.create_calls += 1
        await asyncio.sleep(0)
        if self.create_error:
            return failed(GatewayStatus.ERROR, self.create_error)
        key = (policy.namespace, policy.name)
        if key in self.policies:
            return failed(GatewayStatus.CONFLICT, "Conflict")
        self.policies[key] = policy.to_manifest()
        return ok(self.policies[key])

    async def get_server_version(self) -> Dict:
        await asyncio.sleep(0)
        if self.version_error:
            return failed(GatewayStatus.ERROR, self.version_error)
        return ok(self.version)


def snapshot(name: str, desired, current: int, available: int, namespace: str = "default") -> WorkloadSnapshot:
    return WorkloadSnapshot(
        name=name,
        namespace=namespace,
        desired_replicas=desired,
        current_replicas=current,
        available_replicas=available,
    )


@pytest.fixture
def scenario_workloads() -> List[WorkloadSnapshot]:
    """3 个 Deployment: 1 个健康, 2 个不健康"""
    return [
        snapshot("web", 3, 3, 3),
        snapshot("api", 4, 3, 3),
        snapshot("worker", 2, 2, 1, namespace="jobs"),
    ]


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()
