import time

from fastapi import APIRouter, Response
from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

# Métricas de Prometheus para el API
cleanova_api_requests_total = Counter(
    "cleanova_api_requests_total",
    "Total Cleanova API requests",
    ["method", "endpoint", "status"]
)

cleanova_api_request_duration_seconds = Histogram(
    "cleanova_api_request_duration_seconds",
    "Cleanova API request duration in seconds",
    ["method", "endpoint"]
)

system_uptime_seconds = Gauge(
    "cleanova_uptime_seconds",
    "System uptime in seconds"
)

start_time = time.time()


def record_request(method: str, endpoint: str, status_code: int, elapsed_seconds: float) -> None:
    cleanova_api_requests_total.labels(method=method, endpoint=endpoint, status=str(status_code)).inc()
    cleanova_api_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(elapsed_seconds)


@router.get("/metrics", include_in_schema=False)
def get_metrics():
    """
    Endpoint de métricas para Prometheus.
    No incluido en la documentación de la API.
    """
    system_uptime_seconds.set(time.time() - start_time)

    return Response(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
