import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from shop_insights.api.graphql.router import graphql_router
from shop_insights.api.routers import auth_router, insights_router, stores_router, sync_router, webhook_router
from shop_insights.core.config import get_settings
from shop_insights.core.exceptions import register_exception_handlers
from shop_insights.db.base import Database

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API. The database is created once per process here (or passed
    in), exposed as ``app.state.database`` and disposed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.DATABASE_URL)
        await db.create_all()
        app.state.database = db
        logger.info(f"{settings.PROJECT_NAME} started")
        try:
            yield
        finally:
            await db.dispose()

    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)
    if database is not None:
        # Usable without running the lifespan (e.g. under an ASGI test transport)
        app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # Include routers
    app.include_router(auth_router.router, prefix="/api", tags=["auth"])
    app.include_router(stores_router.router, prefix="/api", tags=["stores"])
    app.include_router(sync_router.router, prefix="/api", tags=["sync"])
    app.include_router(webhook_router.router, prefix="/api", tags=["webhooks"])
    app.include_router(insights_router.router, prefix="/api", tags=["insights"])
    app.include_router(graphql_router, prefix="/graphql", tags=["graphql"])

    @app.get("/", tags=["Root"])
    async def read_root():
        return {"message": f"Welcome to the {settings.PROJECT_NAME}"}

    return app


app = create_app()

# Optional: Add logic to run the server directly for development
if __name__ == "__main__":
    uvicorn.run("shop_insights.server:app", host="0.0.0.0", port=8000, reload=True)
