"""
数据解析工具

提供 label selector 字符串解析
"""

from typing import Dict


def parse_label_selector(selector: str) -> Dict[str, str]:
    """解析 label selector 字符串

    格式: "app=nginx,tier=web" -> {"app": "nginx", "tier": "web"}

    不是恰好一个 "=" 的片段会被直接丢弃 (不报错),
    key 和 value 会去除首尾空白。空字符串返回空字典。

    Args:
        selector: 逗号分隔的 key=value 列表

    Returns:
        label 字典
    """
    labels: Dict[str, str] = {}

    for pair in selector.split(","):
        parts = pair.split("=")
        if len(parts) != 2:
            continue
        labels[parts[0].strip()] = parts[1].strip()

    return labels
