from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings
from app.core.exceptions import register_exception_handlers
from app.database import build_engine, build_session_factory, create_all

# Import all models so Base.metadata knows about them
import app.catalog.models  # noqa: F401
import app.transactions.models  # noqa: F401
import app.carryover.models  # noqa: F401


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = application.state.settings

    # Ensure the data directory exists before DB connection
    if settings.is_sqlite:
        db_path = settings.database_url.split("///")[-1]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = build_engine(settings.database_url, echo=settings.database_echo)

    # Auto-create tables for SQLite in development
    if settings.is_sqlite:
        await create_all(engine)

    application.state.engine = engine
    application.state.session_factory = build_session_factory(engine)

    from app.core.scheduler import setup_scheduler, shutdown_scheduler

    if settings.scheduler_enabled:
        setup_scheduler(application.state.session_factory, settings)

    yield

    shutdown_scheduler()
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()

    fastapi_app = FastAPI(
        title="Ledger Reports",
        description="Income/expense ledger with monthly carryover and period reports",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.settings = settings

    # CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    from app.catalog.router import router as catalog_router
    from app.transactions.router import router as transactions_router
    from app.carryover.router import router as carryover_router
    from app.reports.router import router as reports_router

    fastapi_app.include_router(catalog_router, prefix="/api/catalog", tags=["catalog"])
    fastapi_app.include_router(transactions_router, prefix="/api/transactions", tags=["transactions"])
    fastapi_app.include_router(carryover_router, prefix="/api/carryover", tags=["carryover"])
    fastapi_app.include_router(reports_router, prefix="/api/reports", tags=["reports"])

    # System endpoints
    @fastapi_app.get("/api/system/health")
    async def health():
        return {"data": {"status": "healthy"}}

    # Register exception handlers
    register_exception_handlers(fastapi_app)

    return fastapi_app


app = create_app()
