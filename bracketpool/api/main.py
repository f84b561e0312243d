import time
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bracketpool import __version__
from bracketpool.config import settings
from bracketpool.exceptions import ConfigurationError
from bracketpool.utils.observability import CORRELATION_ID, Logger, get_metrics, initialize_observability
from bracketpool.api.routes import router as api_router

# Initialize Observability
ENVIRONMENT = settings.observability.environment
initialize_observability(environment=ENVIRONMENT, log_level=settings.observability.log_level)

logger = Logger(__name__)

def create_app() -> FastAPI:
    app = FastAPI(
        title="Bracket Pool API",
        description="Bracket validation, submission gate and standings.",
        version=__version__
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_and_timing(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        token = CORRELATION_ID.set(correlation_id)
        structlog.contextvars.bind_contextvars(path=request.url.path)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            get_metrics().request_latency.labels(route=request.url.path).observe(time.perf_counter() - start)
            structlog.contextvars.clear_contextvars()
            CORRELATION_ID.reset(token)
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        get_metrics().contract_violations.labels(error_type=type(exc).__name__).inc()
        logger.log_error("configuration_error", error=str(exc), path=request.url.path)
        return JSONResponse(status_code=500, content={"success": False, "error": "Server configuration error"})

    # Routes
    app.include_router(api_router, prefix="/api")

    @app.get("/")
    def root():
        return {"message": "Bracket Pool API. Go to /docs for Swagger UI.", "version": __version__}

    logger.log_event("api_startup_complete", environment=ENVIRONMENT)

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bracketpool.api.main:app", host=settings.api.host, port=settings.api.port, reload=True)
