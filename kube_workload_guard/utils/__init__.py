"""
工具模块
"""

from .errors import (
    GuardError,
    GuardErrorCode,
    GatewayUnavailableError,
    AggregationTimeoutError,
    ConfigurationError,
    ProvisioningFailedError,
    PolicyMismatchError,
)
from .parsers import parse_label_selector

__all__ = [
    "GuardError",
    "GuardErrorCode",
    "GatewayUnavailableError",
    "AggregationTimeoutError",
    "ConfigurationError",
    "ProvisioningFailedError",
    "PolicyMismatchError",
    "parse_label_selector",
]
