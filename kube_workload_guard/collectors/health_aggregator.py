"""
Deployment 健康聚合器

流程：
1. 列举所有 Deployment (失败则整个请求失败)
2. 每个 Deployment 一个协程并发检查
3. 等待全部检查完成后汇总不健康的 Deployment

判定规则: current != desired 或 available != desired 即为不健康
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Union

from .k8s_client import ClusterGateway
from .models import (
    DESIRED_REPLICAS_UNSET,
    HealthRecord,
    HealthVerdict,
    WorkloadSnapshot,
)
from ..utils.errors import AggregationTimeoutError, GatewayUnavailableError

logger = logging.getLogger(__name__)

Probe = Callable[[WorkloadSnapshot], Awaitable[WorkloadSnapshot]]
HealthReport = Union[HealthVerdict, List[HealthRecord]]


def classify(snapshot: WorkloadSnapshot) -> Optional[HealthRecord]:
    """判断单个 Deployment 的健康状态

    Returns:
        健康返回 None, 不健康返回 HealthRecord。
        desired 未设置视为配置错误: desired 记为 0, 并附带诊断标记
    """
    if snapshot.desired_replicas is None:
        return HealthRecord(
            name=snapshot.name,
            namespace=snapshot.namespace,
            desired_replicas=0,
            current_replicas=snapshot.current_replicas,
            available_replicas=snapshot.available_replicas,
            error=DESIRED_REPLICAS_UNSET,
        )

    desired = snapshot.desired_replicas
    is_unhealthy = (
        snapshot.current_replicas != desired or
        snapshot.available_replicas != desired
    )

    if not is_unhealthy:
        return None

    return HealthRecord(
        name=snapshot.name,
        namespace=snapshot.namespace,
        desired_replicas=desired,
        current_replicas=snapshot.current_replicas,
        available_replicas=snapshot.available_replicas,
    )


async def _embedded_status(snapshot: WorkloadSnapshot) -> WorkloadSnapshot:
    """默认探针: 列举结果中已经包含副本状态"""
    return snapshot


class HealthAggregator:
    """并发收集所有 Deployment 的健康状态

    Example:
        aggregator = HealthAggregator(gateway, timeout=10)
        report = await aggregator.aggregate()
        if report is HealthVerdict.ALL_HEALTHY:
            ...
    """

    def __init__(
        self,
        gateway: ClusterGateway,
        probe: Optional[Probe] = None,
        max_concurrency: Optional[int] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            gateway: 集群 API
            probe: 单个 Deployment 的状态探针 (可选, 可以是远程调用)
            max_concurrency: 同时运行的探针数量上限 (默认不限制)
            timeout: 整个聚合的截止时间 (秒, 默认不限制)
        """
        self.gateway = gateway
        self.probe = probe or _embedded_status
        self.max_concurrency = max_concurrency
        self.timeout = timeout

    async def aggregate(self, namespace: Optional[str] = None) -> HealthReport:
        """聚合健康状态

        Args:
            namespace: 命名空间, None 表示所有命名空间

        Returns:
            HealthVerdict.ALL_HEALTHY 或不健康记录列表

        Raises:
            GatewayUnavailableError: 列举 Deployment 失败
            AggregationTimeoutError: 超过 timeout
        """
        if self.timeout is None:
            return await self._aggregate(namespace)

        try:
            return await asyncio.wait_for(self._aggregate(namespace), self.timeout)
        except asyncio.TimeoutError:
            logger.error("健康聚合超时 (%ss)", self.timeout)
            raise AggregationTimeoutError(self.timeout)

    async def _aggregate(self, namespace: Optional[str]) -> HealthReport:
        # 1. 列举 Deployment, 成功后才开始并发检查
        result = await self.gateway.list_workloads(namespace)
        if not result.get("success"):
            error = result.get("error", "Unknown error")
            logger.error("列举 Deployment 失败: %s", error)
            raise GatewayUnavailableError(error, operation="list_workloads")

        snapshots: List[WorkloadSnapshot] = result.get("data") or []

        # 2. 每个 Deployment 一个任务, 每个任务恰好产生一个结果
        outcomes = await _execute_with_limit(
            self._check_workload, snapshots, self.max_concurrency
        )

        # 3. 健康的结果为 None, 不计入报告
        unhealthy = [outcome for outcome in outcomes if outcome is not None]

        logger.debug(
            "检查了 %d 个 Deployment, %d 个不健康", len(snapshots), len(unhealthy)
        )

        if not unhealthy:
            return HealthVerdict.ALL_HEALTHY
        return unhealthy

    async def _check_workload(self, snapshot: WorkloadSnapshot) -> Optional[HealthRecord]:
        """检查单个 Deployment

        探针失败只影响这一个 Deployment: 记为不健康并附带错误信息
        """
        try:
            return classify(await self.probe(snapshot))
        except Exception as e:
            logger.warning(
                "Deployment %s/%s 状态检查失败: %s", snapshot.namespace, snapshot.name, e
            )
            return HealthRecord(
                name=snapshot.name,
                namespace=snapshot.namespace,
                desired_replicas=snapshot.desired_replicas or 0,
                current_replicas=snapshot.current_replicas,
                available_replicas=snapshot.available_replicas,
                error=f"status probe failed: {e}",
            )


async def _execute_with_limit(
    worker: Callable[[WorkloadSnapshot], Awaitable],
    snapshots: List[WorkloadSnapshot],
    max_concurrent: Optional[int] = None
) -> List:
    """并发执行任务, 可选限制并发数

    限流时协程在拿到信号量之后才创建, 取消时不会留下未执行的协程
    """
    if not max_concurrent:
        return await asyncio.gather(*[worker(snapshot) for snapshot in snapshots])

    semaphore = asyncio.Semaphore(max_concurrent)

    async def run_with_semaphore(snapshot):
        async with semaphore:
            return await worker(snapshot)

    return await asyncio.gather(
        *[run_with_semaphore(snapshot) for snapshot in snapshots]
    )
