"""
Churn Analytics — FastAPI app factory with optional startup preload.
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from churn_analytics import __version__
from churn_analytics.config import PRELOAD_CSV
from churn_analytics.data.loader import CsvParseError
from churn_analytics.data.store import DataStore
from churn_analytics.api.dependencies import set_store
from churn_analytics.api.router_meta import router as meta_router
from churn_analytics.api.router_upload import router as upload_router
from churn_analytics.api.router_dashboard import router as dashboard_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the store and preload CHURN_ANALYTICS_CSV if set."""
    store = DataStore()
    if PRELOAD_CSV:
        print(f"  CHURN_ANALYTICS_CSV = {PRELOAD_CSV}")
        try:
            store.load_csv(PRELOAD_CSV)
        except CsvParseError as exc:
            print(f"  Preload failed: {exc}")
    set_store(store)

    if store.is_loaded:
        print(f"\nChurn Analytics ready — {store.row_count():,} records, "
              f"{store.member_count():,} members, {len(store.locations())} locations\n")
    else:
        print("\nChurn Analytics ready — no data yet. Upload a membership CSV via POST /api/upload.\n")
    yield
    set_store(None)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Churn Analytics API",
        description="Membership churn analytics — KPIs, location × month matrix, journeys",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(meta_router)
    app.include_router(upload_router)
    app.include_router(dashboard_router)
    return app


app = create_app()
