#!/usr/bin/env python3
"""
kube-workload-guard 启动入口

启动流程:
1. 读取配置 (命令行参数 > 环境变量 > 默认值)
2. 连接 API Server 并检查连通性
3. 为目标命名空间创建入站隔离 NetworkPolicy (失败则退出)
4. 启动 HTTP 服务
"""

import asyncio
import logging
import sys

import uvicorn
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from kube_workload_guard.collectors import (
    HealthAggregator,
    KubernetesGateway,
    PolicyProvisioner,
    ProvisionOutcome,
)
from kube_workload_guard.config import GuardSettings, load_settings
from kube_workload_guard.server import create_app
from kube_workload_guard.utils.errors import GuardError


load_dotenv()

console = Console()
logger = logging.getLogger("kube_workload_guard")


def configure_logging(level: str):
    """使用 rich 输出日志"""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


async def provision(gateway: KubernetesGateway, settings: GuardSettings) -> int:
    """连通性检查 + 创建隔离策略

    Returns:
        退出码, 0 表示可以继续启动 HTTP 服务
    """
    version = await gateway.get_server_version()
    if not version.get("success"):
        console.print(f"[red]❌ Error getting Kubernetes version: {version.get('error')}[/red]")
        return 1

    console.print(f"[green]✅ Connected to Kubernetes {version['data']}[/green]")

    if not settings.namespace or not settings.selector:
        console.print("[red]❌ Error: Missing required flags. Please provide values for --namespace and --selector.[/red]")
        return 1

    provisioner = PolicyProvisioner(gateway, strict=settings.strict_policy)
    try:
        outcome = await provisioner.ensure_isolation_policy(settings.namespace, settings.selector)
    except GuardError as e:
        console.print(f"[red]❌ Error creating NetworkPolicy: {e}[/red]")
        return 1

    if outcome is ProvisionOutcome.CREATED:
        console.print(
            f"[green]🔒 NetworkPolicy created to isolate traffic for namespace: "
            f"{settings.namespace} and {settings.selector} workloads[/green]"
        )
    else:
        console.print(
            f"[dim]NetworkPolicy for namespace {settings.namespace} already exists[/dim]"
        )

    return 0


def run(settings: GuardSettings) -> int:
    """构建依赖并启动服务"""
    try:
        gateway = KubernetesGateway.from_kubeconfig(
            settings.kubeconfig, request_timeout=settings.timeout
        )
    except GuardError as e:
        console.print(f"[red]❌ Error creating Kubernetes client: {e}[/red]")
        return 1

    exit_code = asyncio.run(provision(gateway, settings))
    if exit_code != 0:
        return exit_code

    aggregator = HealthAggregator(gateway, timeout=settings.timeout)
    app = create_app(aggregator, gateway)

    logger.info("Server listening on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


def main():
    """CLI 主入口"""
    import argparse

    parser = argparse.ArgumentParser(
        prog="kube-workload-guard",
        description="Deployment 健康检查与命名空间入站隔离",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例:
  %(prog)s --namespace demo --selector app=nginx,tier=web
  NAMESPACE=demo SELECTOR=app=nginx %(prog)s --address :9000
        """
    )

    parser.add_argument("--kubeconfig", help="kubeconfig 路径, 为空则使用集群内配置")
    parser.add_argument("--address", help="HTTP 监听地址 (默认 8081)")
    parser.add_argument("--namespace", help="NetworkPolicy 所在命名空间")
    parser.add_argument("--selector", help="命名空间内 Pod 的 label selector")
    parser.add_argument("--timeout", help="健康聚合截止时间 (秒)")
    parser.add_argument(
        "--strict-policy",
        action="store_true",
        default=None,
        help="已存在的策略 selector 不一致时报错"
    )
    parser.add_argument("--log-level", help="日志级别 (默认 INFO)")

    args = parser.parse_args()

    try:
        settings = load_settings(
            kubeconfig=args.kubeconfig,
            address=args.address,
            namespace=args.namespace,
            selector=args.selector,
            timeout=args.timeout,
            strict_policy=args.strict_policy,
            log_level=args.log_level,
        )
    except GuardError as e:
        console.print(f"[red]❌ 配置错误: {e}[/red]")
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        sys.exit(run(settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  用户中断[/yellow]")
        sys.exit(1)


if __name__ == "__main__":
    main()
