# =============================================================================
# Metrics API — Prometheus Exposition
# =============================================================================
# GET /metrics serves the process-wide registry, including the stage
# latency histogram and outcome counter fed by PrometheusEventSink.
# Only mounted when settings.metrics_enabled is true.
# =============================================================================

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["Metrics"])


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
