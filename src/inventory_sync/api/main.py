"""FastAPI application exposing the inventory view state to the dashboard."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from inventory_sync import __version__
from inventory_sync.api.schemas import (
    HealthResponse,
    InventoryItemResponse,
    InventoryListResponse,
    NoticeListResponse,
    NoticeResponse,
    RefreshStateResponse,
    StatsResponse,
    ViewRequest,
)
from inventory_sync.client.remote import InventoryClient
from inventory_sync.config import configure_logging
from inventory_sync.core.filters import visible
from inventory_sync.core.models import InventoryCreate, InventoryUpdate
from inventory_sync.core.mutations import MutationError
from inventory_sync.core.sync_service import InventorySync

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Mount the inventory view for the lifetime of the app.

    A client or sync settings placed on ``app.state`` before startup are
    used instead of the configured ones. An injected client is not closed
    on shutdown.
    """
    configure_logging()
    injected = getattr(app.state, "client", None)
    remote = injected or InventoryClient()
    try:
        async with InventorySync(remote, getattr(app.state, "sync_settings", None)) as sync:
            app.state.sync = sync
            logger.info("inventory_view_mounted", items=len(sync.snapshot))
            yield
    finally:
        if injected is None:
            await remote.aclose()
        logger.info("inventory_view_unmounted")


app = FastAPI(
    title="Inventory Sync API",
    description="Live inventory snapshot, stock alerts and setup lock",
    version=__version__,
    lifespan=lifespan,
)

# CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_sync(request: Request) -> InventorySync:
    """Get the view state mounted for this application."""
    return request.app.state.sync


def _refresh_state(sync: InventorySync) -> RefreshStateResponse:
    return RefreshStateResponse(
        state=sync.scheduler_state,
        enabled=sync.refresh_enabled,
        locked=sync.locked,
        needs_setup=sync.needs_setup,
        interval_seconds=sync.scheduler.interval,
        status_message=sync.status_message,
    )


def _inventory_list(sync: InventorySync, query: str, category: str | None) -> InventoryListResponse:
    rows = visible(sync.snapshot, query, category)
    return InventoryListResponse(
        items=[InventoryItemResponse.from_record(r) for r in rows],
        total_items=len(rows),
        query=query,
        category=category,
        categories=sync.categories,
        loading=sync.loading,
        needs_setup=sync.needs_setup,
    )


def _mutation_failed(e: MutationError) -> HTTPException:
    status = 404 if e.cause.status_code == 404 else 502
    return HTTPException(status_code=status, detail=f"Failed to {e.operation} item: {e.cause}")


@app.get("/api/health", response_model=HealthResponse)
async def health(sync: InventorySync = Depends(get_sync)) -> HealthResponse:
    """Health check endpoint with refresh loop state."""
    return HealthResponse(status="ok", version=__version__, scheduler=sync.scheduler_state)


@app.get("/api/inventory", response_model=InventoryListResponse)
async def list_inventory(
    q: str | None = None,
    category: str | None = None,
    sync: InventorySync = Depends(get_sync),
) -> InventoryListResponse:
    """Get the visible rows of the current snapshot.

    Without parameters the view's own query and category apply.
    """
    if q is None and category is None:
        return _inventory_list(sync, sync.search_query, sync.category)
    return _inventory_list(sync, q or "", category or None)


@app.put("/api/view", response_model=InventoryListResponse)
async def update_view(
    request: ViewRequest, sync: InventorySync = Depends(get_sync)
) -> InventoryListResponse:
    """Change the search query (reloaded after a short pause) and category."""
    if request.query != sync.search_query:
        sync.set_search_query(request.query)
    sync.select_category(request.category)
    return _inventory_list(sync, sync.search_query, sync.category)


@app.get("/api/inventory/stats", response_model=StatsResponse)
async def get_stats(sync: InventorySync = Depends(get_sync)) -> StatsResponse:
    """Get counters for the stat tiles."""
    return StatsResponse(**sync.stats.model_dump())


@app.get("/api/refresh-state", response_model=RefreshStateResponse)
async def get_refresh_state(sync: InventorySync = Depends(get_sync)) -> RefreshStateResponse:
    """Get the automatic refresh state."""
    return _refresh_state(sync)


@app.post("/api/refresh", response_model=RefreshStateResponse)
async def refresh_now(sync: InventorySync = Depends(get_sync)) -> RefreshStateResponse:
    """Reload the snapshot right away."""
    await sync.refresh_now()
    return _refresh_state(sync)


@app.post("/api/auto-refresh/toggle", response_model=RefreshStateResponse)
async def toggle_auto_refresh(sync: InventorySync = Depends(get_sync)) -> RefreshStateResponse:
    """Pause or resume automatic refresh.

    While locked or while a write is in flight the request is rejected
    with a notice and the state is returned unchanged.
    """
    await sync.toggle_auto_refresh()
    return _refresh_state(sync)


@app.post("/api/inventory", response_model=InventoryItemResponse, status_code=201)
async def create_item(
    request: InventoryCreate, sync: InventorySync = Depends(get_sync)
) -> InventoryItemResponse:
    """Create an inventory record."""
    try:
        record = await sync.create_item(request)
    except MutationError as e:
        raise _mutation_failed(e)
    return InventoryItemResponse.from_record(record)


@app.put("/api/inventory/{record_id}", response_model=InventoryItemResponse)
async def update_item(
    record_id: int, request: InventoryUpdate, sync: InventorySync = Depends(get_sync)
) -> InventoryItemResponse:
    """Update an inventory record."""
    try:
        record = await sync.update_item(record_id, request)
    except MutationError as e:
        raise _mutation_failed(e)
    return InventoryItemResponse.from_record(record)


@app.delete("/api/inventory/{record_id}", status_code=204)
async def delete_item(record_id: int, sync: InventorySync = Depends(get_sync)) -> Response:
    """Delete an inventory record."""
    try:
        await sync.delete_item(record_id)
    except MutationError as e:
        raise _mutation_failed(e)
    return Response(status_code=204)


@app.get("/api/notifications", response_model=NoticeListResponse)
async def drain_notifications(sync: InventorySync = Depends(get_sync)) -> NoticeListResponse:
    """Return and clear pending notices, oldest first."""
    return NoticeListResponse(
        notices=[NoticeResponse.from_notice(n) for n in sync.notifications.drain()]
    )
