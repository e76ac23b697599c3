from fastapi import FastAPI
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager
from prometheus_fastapi_instrumentator import Instrumentator
from app.logging import init_logging
from app.api.routes import content_files_router, health_router

logger = init_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup and shutdown; the storage client is built on the first request."""
    logger.info("startup_complete")
    yield
    logger.info("shutdown_complete")

def operation_id(route: APIRoute) -> str:
    # OpenAPI operation ids are the route names (UploadFile, GetFileById, ...)
    return route.name

app = FastAPI(
    title="Content Files API",
    version="v1",
    description="Upload, download, list and delete files in blob storage containers.",
    lifespan=lifespan,
    generate_unique_id_function=operation_id,
)

# Include routers
app.include_router(content_files_router)
app.include_router(health_router)

@app.get("/healthz")
def healthz():
    return {"ok": True}

# Prometheus /metrics
Instrumentator().instrument(app).expose(app, endpoint="/metrics")
