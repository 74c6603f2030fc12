"""
kube-workload-guard - Deployment 健康聚合与命名空间入站隔离
"""

__version__ = "1.0.0"
