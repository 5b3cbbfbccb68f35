from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from complyai.api_routers.v1 import api_router
from complyai.features.health.routes.health import router as health_router
from complyai.features.indexing.services.components import build_components
from complyai.platform.config import settings
from complyai.platform.db.session import SessionLocal, engine, init_db
from complyai.platform.exceptions import add_exception_handlers
from complyai.platform.logger import get_logger

# Handlers live on the package logger; module loggers (complyai.*) propagate to it
logger = get_logger("complyai")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db(engine)
    app.state.components = build_components(SessionLocal)
    logger.info("Database initialized and pipeline components ready")
    try:
        yield
    finally:
        await app.state.components.close()
        await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Accessibility indexing and semantic violation search",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


@app.get("/", tags=["Info"])
def root():
    return {
        "app_name": settings.APP_NAME,
        "description": "Crawls websites, scans pages for accessibility violations and indexes them for search.",
        "version": "1.0.0",
        "docs_url": "/docs",
        "api_base": "/api/v1",
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

app.include_router(health_router)
app.include_router(api_router, prefix="/api/v1")
