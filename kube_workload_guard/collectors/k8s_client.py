"""
Kubernetes 客户端 - 基于官方 kubernetes Python 客户端

提供健康聚合和策略创建需要的四个操作:
1. 列举 Deployment
2. 查询 NetworkPolicy
3. 创建 NetworkPolicy
4. 查询 API Server 版本 (连通性检查)

所有方法返回统一结构:
    {"success": bool, "status": GatewayStatus, "data": any, "error": str}
"""

import asyncio
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from .models import GatewayStatus, IsolationPolicy, WorkloadSnapshot
from ..utils.errors import ConfigurationError

logger = logging.getLogger(__name__)


class ClusterGateway(Protocol):
    """健康聚合器和策略创建器依赖的集群操作"""

    async def list_workloads(self, namespace: Optional[str] = None) -> Dict: ...

    async def get_policy(self, namespace: str, name: str) -> Dict: ...

    async def create_policy(self, policy: IsolationPolicy) -> Dict: ...

    async def get_server_version(self) -> Dict: ...


def ok(data: Any = None) -> Dict:
    return {"success": True, "status": GatewayStatus.OK, "data": data}


def failed(status: GatewayStatus, error: str) -> Dict:
    return {"success": False, "status": status, "data": None, "error": error}


def load_api_client(kubeconfig: Optional[str] = None) -> client.ApiClient:
    """构建 ApiClient

    策略:
    1. kubeconfig 路径存在时使用该文件
    2. 否则尝试集群内配置 (ServiceAccount)
    3. 最后回退到客户端默认的 kubeconfig 查找

    Raises:
        ConfigurationError: 所有方式都失败
    """
    if kubeconfig:
        path = os.path.expanduser(kubeconfig)
        if os.path.exists(path):
            try:
                return config.new_client_from_config(config_file=path)
            except ConfigException as e:
                raise ConfigurationError(
                    f"Error building kubeconfig: {e}", field="kubeconfig", value=path
                ) from e
        logger.info("kubeconfig %s 不存在, 尝试集群内配置", path)

    try:
        config.load_incluster_config()
        return client.ApiClient()
    except ConfigException:
        logger.debug("集群内配置不可用, 回退到默认 kubeconfig")

    try:
        return config.new_client_from_config()
    except ConfigException as e:
        raise ConfigurationError(f"Error building kubeconfig: {e}", field="kubeconfig") from e


def _to_int(value: Optional[int]) -> int:
    # API 会省略为 0 的计数字段
    return value or 0


def snapshot_from_deployment(deployment: Any) -> WorkloadSnapshot:
    """将 V1Deployment 转换为 WorkloadSnapshot"""
    spec = deployment.spec
    status = deployment.status

    return WorkloadSnapshot(
        name=deployment.metadata.name,
        namespace=deployment.metadata.namespace,
        desired_replicas=spec.replicas if spec is not None else None,
        current_replicas=_to_int(status.replicas) if status is not None else 0,
        available_replicas=_to_int(status.available_replicas) if status is not None else 0,
    )


class KubernetesGateway:
    """kubernetes 客户端封装

    阻塞调用放到线程中执行, 以便在事件循环中 await 和取消。
    不做重试, 也不做缓存: 每次请求都是当前时刻的快照。
    """

    def __init__(self, api_client: client.ApiClient, request_timeout: Optional[float] = None):
        """
        Args:
            api_client: 已完成认证配置的 ApiClient
            request_timeout: 单次 API 请求的超时时间 (秒, 默认不限制)。
                线程中的阻塞调用无法被取消, 超时后线程才会释放
        """
        self.api_client = api_client
        self.request_timeout = request_timeout
        self.apps_v1 = client.AppsV1Api(api_client)
        self.networking_v1 = client.NetworkingV1Api(api_client)
        self.version_api = client.VersionApi(api_client)

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig: Optional[str] = None,
        request_timeout: Optional[float] = None
    ) -> "KubernetesGateway":
        return cls(load_api_client(kubeconfig), request_timeout=request_timeout)

    async def _call(self, func: Callable, *args: Any, **kwargs: Any) -> Dict:
        """执行 API 调用并把异常映射为结果标签"""
        if self.request_timeout is not None:
            kwargs["_request_timeout"] = self.request_timeout

        try:
            data = await asyncio.to_thread(func, *args, **kwargs)
        except ApiException as e:
            if e.status == 404:
                return failed(GatewayStatus.NOT_FOUND, e.reason or "Not Found")
            if e.status == 409:
                return failed(GatewayStatus.CONFLICT, e.reason or "Conflict")
            return failed(GatewayStatus.ERROR, f"({e.status}) {e.reason}")
        except Exception as e:
            return failed(GatewayStatus.ERROR, str(e))

        return ok(data)

    # === Deployment ===

    async def list_workloads(self, namespace: Optional[str] = None) -> Dict:
        """列举 Deployment

        Args:
            namespace: 命名空间, None 表示所有命名空间

        Returns:
            {"success": True, "data": [WorkloadSnapshot, ...]}
        """
        if namespace:
            result = await self._call(self.apps_v1.list_namespaced_deployment, namespace)
        else:
            result = await self._call(self.apps_v1.list_deployment_for_all_namespaces)

        if not result["success"]:
            return result

        snapshots: List[WorkloadSnapshot] = [
            snapshot_from_deployment(item) for item in result["data"].items
        ]
        return ok(snapshots)

    # === NetworkPolicy ===

    async def get_policy(self, namespace: str, name: str) -> Dict:
        """查询 NetworkPolicy

        Returns:
            {"success": True, "data": NetworkPolicy JSON 字典}
            不存在时 status 为 NOT_FOUND
        """
        result = await self._call(
            self.networking_v1.read_namespaced_network_policy, name, namespace
        )
        if not result["success"]:
            return result

        return ok(self.api_client.sanitize_for_serialization(result["data"]))

    async def create_policy(self, policy: IsolationPolicy) -> Dict:
        """创建 NetworkPolicy

        同名对象已存在时 status 为 CONFLICT
        """
        result = await self._call(
            self.networking_v1.create_namespaced_network_policy,
            policy.namespace,
            policy.to_manifest(),
        )
        if not result["success"]:
            return result

        return ok(self.api_client.sanitize_for_serialization(result["data"]))

    # === 连通性 ===

    async def get_server_version(self) -> Dict:
        """获取 API Server 版本

        Returns:
            {"success": True, "data": "v1.29.0"}
        """
        result = await self._call(self.version_api.get_code)
        if not result["success"]:
            return result

        return ok(result["data"].git_version)
