"""
收集器模块 - Deployment 健康聚合与 NetworkPolicy 创建
"""

from .k8s_client import ClusterGateway, KubernetesGateway, load_api_client
from .health_aggregator import HealthAggregator, HealthReport, classify
from .policy_provisioner import PolicyProvisioner
from .models import (
    GatewayStatus,
    HealthRecord,
    HealthVerdict,
    IsolationPolicy,
    ProvisionOutcome,
    WorkloadSnapshot,
    policy_name_for,
)

__all__ = [
    # K8s 客户端
    "ClusterGateway",
    "KubernetesGateway",
    "load_api_client",
    # 聚合与创建
    "HealthAggregator",
    "HealthReport",
    "classify",
    "PolicyProvisioner",
    # 模型
    "GatewayStatus",
    "HealthRecord",
    "HealthVerdict",
    "IsolationPolicy",
    "ProvisionOutcome",
    "WorkloadSnapshot",
    "policy_name_for",
]
