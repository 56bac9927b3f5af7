"""
Метрики Prometheus для сервиса.

Назначение:
- Экспорт /metrics
- Счётчики по стадиям пайплайна голосовых команд
- Счётчики обращений к внешним шлюзам (STT / chat-completion)
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# =============================================================================
# СЧЁТЧИКИ И МЕТРИКИ
# =============================================================================

# Общее количество HTTP-запросов
REQUESTS_TOTAL = Counter(
    "agent_requests_total",
    "Общее количество HTTP запросов",
    ["service", "route", "method", "status"],
)

HTTP_REQUEST_LATENCY_MS = Histogram(
    "agent_http_request_latency_ms",
    "Задержка HTTP запроса (мс)",
    ["service", "route", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000),
)

# Задержки по стадиям пайплайна: transcribe|resolve|dispatch
PIPELINE_STAGE_LATENCY_MS = Histogram(
    "agent_pipeline_stage_latency_ms",
    "Задержка выполнения стадий пайплайна (мс)",
    ["service", "stage"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000),
)

UPSTREAM_CALLS_TOTAL = Counter(
    "agent_upstream_calls_total",
    "Вызовы внешних шлюзов",
    ["gateway", "result"],  # gateway=stt|llm, result=ok|upstream_error|transport_error
)

INTENTS_RESOLVED_TOTAL = Counter(
    "agent_intents_resolved_total",
    "Результаты классификации голосовых команд",
    ["kind", "outcome"],  # outcome=parsed|fallback
)

INTENTS_DISPATCHED_TOTAL = Counter(
    "agent_intents_dispatched_total",
    "Результаты исполнения голосовых команд",
    ["kind", "result"],  # result=ok|error
)

PIPELINE_RUNS_TOTAL = Counter(
    "agent_pipeline_runs_total",
    "Запуски пайплайна голосовых команд",
    ["result"],  # ok|failed|cancelled
)


@contextmanager
def track_stage_latency(service: str, stage: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        PIPELINE_STAGE_LATENCY_MS.labels(service=service, stage=stage).observe(elapsed_ms)


def record_upstream_call(*, gateway: str, result: str) -> None:
    UPSTREAM_CALLS_TOTAL.labels(gateway=gateway, result=result).inc()


# =============================================================================
# ENDPOINT /metrics
# =============================================================================
def setup_metrics_endpoint(app: FastAPI, *, service: str = "voice-command-api") -> None:
    """
    Регистрирует endpoint /metrics для Prometheus.
    """

    @app.middleware("http")
    async def http_metrics(request: Request, call_next):
        route = request.url.path
        method = request.method
        started = time.perf_counter()

        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        status_code = str(response.status_code)

        REQUESTS_TOTAL.labels(
            service=service,
            route=route,
            method=method,
            status=status_code,
        ).inc()
        HTTP_REQUEST_LATENCY_MS.labels(
            service=service,
            route=route,
            method=method,
        ).observe(elapsed_ms)
        return response

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
