from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .utils.errors import ConfigurationError


SETTING_DEFAULTS = {
    "kubeconfig": {"env": "KUBECONFIG", "default": "~/.kube/config"},
    "address": {"env": "LISTEN_ADDRESS", "default": "8081"},
    "namespace": {"env": "NAMESPACE", "default": "default"},
    "selector": {"env": "SELECTOR", "default": ""},
    "timeout": {"env": "HEALTH_TIMEOUT", "default": None},
    "strict_policy": {"env": "STRICT_POLICY", "default": "false"},
    "log_level": {"env": "LOG_LEVEL", "default": "INFO"},
}

TRUE_VALUES = {"1", "true", "yes", "on"}

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass
class GuardSettings:
    """启动配置, 优先级: 命令行参数 > 环境变量 > 默认值"""

    kubeconfig: str
    host: str
    port: int
    namespace: str
    selector: str
    timeout: Optional[float] = None
    strict_policy: bool = False
    log_level: str = "INFO"


def _resolve(name: str, value: Optional[str]) -> Optional[str]:
    if value:
        return value
    spec = SETTING_DEFAULTS[name]
    env_value = os.getenv(spec["env"])
    if env_value is not None:
        return env_value
    return spec["default"]


def parse_listen_address(address: str) -> Tuple[str, int]:
    """解析监听地址, 支持 "8081"、":8081"、"127.0.0.1:8081" """
    host, sep, port = address.strip().rpartition(":")
    if not sep:
        host = ""
    host = host or "0.0.0.0"

    try:
        port_number = int(port)
    except ValueError:
        raise ConfigurationError("invalid listen address", field="address", value=address)

    if not 0 < port_number < 65536:
        raise ConfigurationError("listen port out of range", field="address", value=address)

    return host, port_number


def load_settings(
    kubeconfig: Optional[str] = None,
    address: Optional[str] = None,
    namespace: Optional[str] = None,
    selector: Optional[str] = None,
    timeout: Optional[str] = None,
    strict_policy: Optional[bool] = None,
    log_level: Optional[str] = None,
) -> GuardSettings:
    """合并命令行参数与环境变量

    Raises:
        ConfigurationError: 地址、超时或日志级别无效
    """
    host, port = parse_listen_address(_resolve("address", address))

    raw_timeout = _resolve("timeout", timeout)
    parsed_timeout = None
    if raw_timeout:
        try:
            parsed_timeout = float(raw_timeout)
        except ValueError:
            raise ConfigurationError("invalid timeout", field="timeout", value=raw_timeout)
        if parsed_timeout <= 0:
            raise ConfigurationError("timeout must be positive", field="timeout", value=raw_timeout)

    if strict_policy:
        strict = True
    else:
        strict = _resolve("strict_policy", None).strip().lower() in TRUE_VALUES

    level = _resolve("log_level", log_level).strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigurationError("invalid log level", field="log_level", value=level)

    return GuardSettings(
        kubeconfig=_resolve("kubeconfig", kubeconfig),
        host=host,
        port=port,
        namespace=_resolve("namespace", namespace),
        selector=_resolve("selector", selector),
        timeout=parsed_timeout,
        strict_policy=strict,
        log_level=level,
    )
