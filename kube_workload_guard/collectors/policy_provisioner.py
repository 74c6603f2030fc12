"""
NetworkPolicy 创建器 - 幂等地为命名空间创建入站隔离策略

流程：
1. 解析 selector
2. 查询 "isolate-<namespace>" 是否已存在, 存在则直接返回
3. 不存在则创建
4. 创建时返回 409 Conflict 说明其他调用方抢先创建, 同样视为已存在

不持有本地锁: API Server 对同名对象的原子创建是唯一的串行化点
"""

import logging

from .k8s_client import ClusterGateway
from .models import GatewayStatus, IsolationPolicy, ProvisionOutcome, policy_name_for
from ..utils.errors import GuardErrorCode, PolicyMismatchError, ProvisioningFailedError
from ..utils.parsers import parse_label_selector

logger = logging.getLogger(__name__)


class PolicyProvisioner:
    """确保每个命名空间恰好存在一个隔离策略"""

    def __init__(self, gateway: ClusterGateway, strict: bool = False):
        """
        Args:
            gateway: 集群 API
            strict: 严格模式, 已存在的策略 selector 不一致时报错 (默认关闭,
                已存在的策略内容不做比较)
        """
        self.gateway = gateway
        self.strict = strict

    async def ensure_isolation_policy(self, namespace: str, selector: str) -> ProvisionOutcome:
        """确保隔离策略存在

        Args:
            namespace: 目标命名空间
            selector: label selector 字符串, 如 "app=nginx,tier=web"

        Returns:
            ProvisionOutcome.CREATED 或 ProvisionOutcome.ALREADY_EXISTS

        Raises:
            ProvisioningFailedError: 查询或创建失败 (冲突除外)
            PolicyMismatchError: 严格模式下已存在策略的 selector 不一致
        """
        labels = parse_label_selector(selector)
        name = policy_name_for(namespace)

        existing = await self.gateway.get_policy(namespace, name)
        status = existing.get("status")

        if status == GatewayStatus.OK:
            if self.strict:
                self._verify_selector(namespace, name, existing.get("data") or {}, labels)
            logger.info("NetworkPolicy %s/%s 已存在, 跳过创建", namespace, name)
            return ProvisionOutcome.ALREADY_EXISTS

        if status != GatewayStatus.NOT_FOUND:
            raise ProvisioningFailedError(
                f"Error checking NetworkPolicy: {existing.get('error', 'Unknown error')}",
                namespace=namespace,
                policy_name=name,
                code=GuardErrorCode.API_UNAVAILABLE,
            )

        policy = IsolationPolicy(namespace=namespace, pod_selector=labels)
        created = await self.gateway.create_policy(policy)
        status = created.get("status")

        if status == GatewayStatus.OK:
            logger.info("已创建 NetworkPolicy %s/%s, selector=%s", namespace, name, labels)
            return ProvisionOutcome.CREATED

        if status == GatewayStatus.CONFLICT:
            # 查询与创建之间被其他调用方创建
            logger.info("NetworkPolicy already exists: %s", created.get("error"))
            return ProvisionOutcome.ALREADY_EXISTS

        logger.error("Error creating NetworkPolicy: %s", created.get("error"))
        raise ProvisioningFailedError(
            f"Error creating NetworkPolicy: {created.get('error', 'Unknown error')}",
            namespace=namespace,
            policy_name=name,
        )

    def _verify_selector(self, namespace: str, name: str, manifest: dict, labels: dict):
        """严格模式: 比较已存在策略的 matchLabels"""
        pod_selector = (manifest.get("spec") or {}).get("podSelector") or {}
        current = pod_selector.get("matchLabels") or {}

        if current != labels:
            raise PolicyMismatchError(namespace, name, existing=current, requested=labels)
