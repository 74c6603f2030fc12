"""
HTTP 接口

- /healthz            进程存活
- /deployment-health  Deployment 健康聚合
- /kube-api-health    API Server 连通性
"""

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse

from ..collectors.health_aggregator import HealthAggregator
from ..collectors.k8s_client import ClusterGateway
from ..collectors.models import HealthVerdict
from ..utils.errors import AggregationTimeoutError, GatewayUnavailableError

logger = logging.getLogger(__name__)


def create_app(aggregator: HealthAggregator, gateway: ClusterGateway) -> FastAPI:
    """构建 FastAPI 应用

    Args:
        aggregator: 健康聚合器
        gateway: 集群 API (用于连通性检查)
    """
    app = FastAPI(title="kube-workload-guard")

    @app.get("/healthz", response_class=PlainTextResponse)
    async def healthz():
        return PlainTextResponse("ok")

    @app.get("/deployment-health")
    async def deployment_health():
        try:
            report = await aggregator.aggregate()
        except GatewayUnavailableError as e:
            return PlainTextResponse(f"Error listing deployments: {e.message}", status_code=500)
        except AggregationTimeoutError as e:
            return PlainTextResponse(e.message, status_code=504)

        if report is HealthVerdict.ALL_HEALTHY:
            return PlainTextResponse(report.value)

        return JSONResponse([record.to_json_dict() for record in report])

    @app.get("/kube-api-health", response_class=PlainTextResponse)
    async def kube_api_health():
        result = await gateway.get_server_version()
        if not result.get("success"):
            error = result.get("error", "Unknown error")
            logger.warning("API Server 不可达: %s", error)
            return PlainTextResponse(
                f"Kubernetes API server is unreachable: "
                f"failed to connect to Kubernetes API server: {error}",
                status_code=503,
            )
        return PlainTextResponse("Kubernetes API server is reachable")

    return app
