"""
数据模型定义

快照和策略使用 dataclass, 对外输出的健康记录使用 Pydantic
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class GatewayStatus(str, Enum):
    """集群 API 调用结果标签"""
    OK = "ok"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    ERROR = "error"


class HealthVerdict(str, Enum):
    """全部健康时返回的哨兵结果"""
    ALL_HEALTHY = "All deployments are healthy"


class ProvisionOutcome(str, Enum):
    """策略创建结果"""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


POLICY_NAME_PREFIX = "isolate-"

# 聚合器填写的诊断标记
DESIRED_REPLICAS_UNSET = "desired replicas not set"


@dataclass(frozen=True)
class WorkloadSnapshot:
    """单个 Deployment 的副本状态快照

    desired_replicas 为 None 表示 spec.replicas 未设置
    """
    name: str
    namespace: str
    desired_replicas: Optional[int]
    current_replicas: int = 0
    available_replicas: int = 0


class HealthRecord(BaseModel):
    """不健康 Deployment 的记录"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    namespace: str
    desired_replicas: int = Field(alias="desiredReplicas")
    current_replicas: int = Field(alias="currentReplicas")
    available_replicas: int = Field(alias="availableReplicas")
    error: Optional[str] = None

    def to_json_dict(self) -> Dict[str, Any]:
        """转换为 HTTP 响应使用的 camelCase 字典 (error 为空时省略)"""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class IsolationPolicy:
    """仅入站的隔离策略

    每个命名空间一个, 名称固定为 "isolate-<namespace>"
    """
    namespace: str
    pod_selector: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return policy_name_for(self.namespace)

    def to_manifest(self) -> Dict[str, Any]:
        """生成 networking.k8s.io/v1 NetworkPolicy 清单"""
        return {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "NetworkPolicy",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
            },
            "spec": {
                "podSelector": {"matchLabels": dict(self.pod_selector)},
                "policyTypes": ["Ingress"],
                # 空 podSelector 匹配同命名空间内的所有 Pod
                "ingress": [{"from": [{"podSelector": {}}]}],
            },
        }


def policy_name_for(namespace: str) -> str:
    """命名空间对应的策略名称"""
    return f"{POLICY_NAME_PREFIX}{namespace}"
