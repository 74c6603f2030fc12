"""
守护进程错误类型定义

提供结构化的错误处理机制
"""

from enum import Enum
from typing import Dict, Any, Optional


class GuardErrorCode(Enum):
    """错误码枚举"""

    # 超时类错误
    TIMEOUT = "TIMEOUT"

    # 资源类错误
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"

    # API 类错误
    API_ERROR = "API_ERROR"
    API_UNAVAILABLE = "API_UNAVAILABLE"

    # 配置类错误
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    # 未知错误
    UNKNOWN = "UNKNOWN"


class GuardError(Exception):
    """异常基类

    提供结构化的错误信息,便于日志记录和 HTTP 响应

    Attributes:
        message: 错误消息
        code: 错误码
        details: 额外的错误详情
    """

    def __init__(
        self,
        message: str,
        code: GuardErrorCode = GuardErrorCode.UNKNOWN,
        details: Optional[Dict[str, Any]] = None
    ):
        """初始化错误

        Args:
            message: 错误描述信息
            code: 错误码
            details: 额外的错误详情 (如命名空间、资源名等)
        """
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.value}] {self.message} ({details_str})"
        return f"[{self.code.value}] {self.message}"


class GatewayUnavailableError(GuardError):
    """集群 API 不可达

    列举工作负载或查询版本失败时抛出, 整个请求终止
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        all_details = details or {}
        if operation:
            all_details["operation"] = operation

        super().__init__(message, GuardErrorCode.API_UNAVAILABLE, all_details)


class AggregationTimeoutError(GuardError):
    """健康聚合超出截止时间"""

    def __init__(self, timeout: float):
        super().__init__(
            f"deployment health aggregation exceeded {timeout}s",
            GuardErrorCode.TIMEOUT,
            {"timeout_seconds": timeout}
        )


class ConfigurationError(GuardError):
    """配置错误

    用于启动参数、环境变量或 kubeconfig 无效的情况
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """初始化配置错误

        Args:
            message: 错误描述
            field: 出错的配置项
            value: 错误的值
            details: 额外详情
        """
        all_details = details or {}
        if field:
            all_details["field"] = field
        if value is not None:
            all_details["value"] = str(value)

        super().__init__(message, GuardErrorCode.CONFIGURATION_ERROR, all_details)


class ProvisioningFailedError(GuardError):
    """NetworkPolicy 创建失败

    冲突 (409) 不属于此类错误, 会被当作已存在处理
    """

    def __init__(
        self,
        message: str,
        namespace: Optional[str] = None,
        policy_name: Optional[str] = None,
        code: GuardErrorCode = GuardErrorCode.API_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        all_details = details or {}
        if namespace:
            all_details["namespace"] = namespace
        if policy_name:
            all_details["policy_name"] = policy_name

        super().__init__(message, code, all_details)


class PolicyMismatchError(ProvisioningFailedError):
    """严格模式下已存在的策略与请求的 selector 不一致"""

    def __init__(
        self,
        namespace: str,
        policy_name: str,
        existing: Dict[str, str],
        requested: Dict[str, str]
    ):
        super().__init__(
            f"NetworkPolicy {policy_name} already exists with a different pod selector",
            namespace=namespace,
            policy_name=policy_name,
            code=GuardErrorCode.RESOURCE_CONFLICT,
            details={"existing": existing, "requested": requested}
        )
