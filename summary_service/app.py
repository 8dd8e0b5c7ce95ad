# summary_service/app.py
import sys
import time
from contextlib import asynccontextmanager

# Load .env BEFORE any package imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from summary_service import config
from summary_service import monitoring
from summary_service.connectors import glide_connector
from summary_service.orchestrator import SummaryOrchestrator
from summary_service.schemas import utc_now_iso

ENDPOINTS = {
    "generateSummary": "GET /generate-summary?projectId=xxx&drawings=xxx&materials=xxx&process=xxx&conversations=xxx",
    "generateSummaryWebhook": "POST /generate-summary (JSON body with the same fields)",
    "health": "GET /health",
    "metrics": "GET /metrics",
    "docs": "GET /",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to start without required credentials
    config.validate_required_config()
    if not glide_connector.is_configured():
        monitoring.logger.warning("Glide credentials not set; summary propagation disabled")
    monitoring.logger.info("Summary service started", extra={
        "version": config.VERSION, "store_backend": config.STORE_BACKEND,
    })
    yield


app = FastAPI(title="Project Status Summary API", version=config.VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# instantiate orchestrator once
orchestrator = SummaryOrchestrator()


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": request.url.path})
        raise
    finally:
        # label by route template so unmatched paths share one series
        route = request.scope.get("route")
        endpoint = getattr(route, "path", None) or "unmatched"
        monitoring.observe_request(start, endpoint, method, status)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={
            "success": False,
            "error": "Endpoint not found",
            "availableEndpoints": list(ENDPOINTS.values()),
        })
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=500, content={
        "success": False,
        "error": "Internal server error",
        "details": str(exc),
        "metadata": {"executionTimeMs": 0, "timestamp": utc_now_iso()},
    })


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
async def _run_pipeline(payload, endpoint: str) -> JSONResponse:
    start = time.time()
    monitoring.logger.info(f"Received {endpoint} request", extra={"fields": sorted(payload.keys())})
    try:
        status_code, body = await orchestrator.handle_request(payload)
        return JSONResponse(status_code=status_code, content=body)
    except Exception as e:
        monitoring.logger.exception(f"Unexpected error in {endpoint} handler")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "details": str(e),
                "metadata": {
                    "executionTimeMs": int((time.time() - start) * 1000),
                    "timestamp": utc_now_iso(),
                },
            },
        )


@app.get("/generate-summary")
async def generate_summary_get(request: Request):
    """
    GET /generate-summary?projectId=...&drawings=...&materials=...&process=...&conversations=...
    """
    return await _run_pipeline(dict(request.query_params), "GET /generate-summary")


@app.post("/generate-summary")
async def generate_summary_post(request: Request):
    """
    POST /generate-summary
    Body: { "projectId" | "rowID" | "Row ID" | ...: "...", "drawings": "...", ... }
    Query parameters are merged underneath the body.
    """
    raw = await request.body()
    if not raw.strip():
        body = {}
    else:
        try:
            body = await request.json()
        except ValueError:
            body = None
    if not isinstance(body, dict):
        return JSONResponse(status_code=400, content={
            "success": False,
            "error": "Request body must be a JSON object",
            "hint": "Send Content-Type: application/json with the project fields",
        })
    payload = dict(request.query_params)
    payload.update(body)
    return await _run_pipeline(payload, "POST /generate-summary")


@app.get("/health")
async def health():
    store_ok = await run_in_threadpool(orchestrator.store.ping)
    return {
        "status": "ok" if store_ok else "degraded",
        "version": config.VERSION,
        "timestamp": utc_now_iso(),
        "services": {
            "sheets": store_ok,
            "llm": config.llm_configured(),
            "glide": glide_connector.is_configured(),
        },
    }


@app.get("/")
async def root():
    return {
        "message": "Project Status Summary API is running",
        "version": config.VERSION,
        "endpoints": ENDPOINTS,
    }


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)


def main():
    """Console entry: validate configuration, then serve with uvicorn."""
    try:
        config.validate_required_config()
    except config.ConfigError as e:
        monitoring.logger.error(str(e))
        sys.exit(1)

    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
