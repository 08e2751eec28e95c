from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pharmaguard.api.router import api_router
from pharmaguard.config import get_config
from pharmaguard.core.logging import setup_logging
from pharmaguard.services.pipeline.analysis_pipeline import get_analysis_pipeline

setup_logging(get_config().log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    pipeline = get_analysis_pipeline()
    yield
    # Flush pending result writes before shutdown
    await pipeline.wait_for_background_tasks()
    await pipeline.explainer.client.aclose()


app = FastAPI(
    title="PharmaGuard API",
    description="Deterministic pharmacogenomic drug-safety risk classification",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "PharmaGuard"}
