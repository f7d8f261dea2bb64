"""Kitchen Display System related API routes.

Every route is scoped to the restaurant named by ``X-Tenant-ID``; the
operator named by ``X-User`` is written to the status history.
"""

from __future__ import annotations

import asyncio
import json
from functools import partial

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from .deps.tenant import get_lifecycle, get_operator, get_tenant_id
from .domain import OrderStatus
from .kds import BoardCard, PageSpec, RefreshCoordinator, view_payload
from .kds.partition import MAX_PAGE_SIZE
from .services import OrderLifecycleService
from .utils.responses import ok

KEEPALIVE_INTERVAL = 15

router = APIRouter(prefix="/api/kds")


class StatusChangeIn(BaseModel):
    status: OrderStatus


def _page_size(request: Request, page_size: int | None) -> int:
    return page_size or request.app.state.settings.kds_page_size


@router.get("/queues")
async def list_queues(
    request: Request,
    statuses: list[OrderStatus] | None = Query(None),
    page_size: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE),
    pending_page: int = Query(1, ge=1),
    preparing_page: int = Query(1, ge=1),
    ready_page: int = Query(1, ge=1),
    tenant_id: str = Depends(get_tenant_id),
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
) -> dict:
    """Return one independently paginated page per active status."""
    size = _page_size(request, page_size)
    pages = {
        OrderStatus.PENDING: PageSpec(pending_page, size),
        OrderStatus.PREPARING: PageSpec(preparing_page, size),
        OrderStatus.READY: PageSpec(ready_page, size),
    }
    views = await lifecycle.list_queues(tenant_id, statuses, pages)
    now = lifecycle.clock()
    return ok({"queues": [view_payload(view, now) for view in views.values()]})


@router.get("/orders/{order_id}")
async def get_order(
    order_id: str,
    tenant_id: str = Depends(get_tenant_id),
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
) -> dict:
    order = await lifecycle.get_order(tenant_id, order_id)
    return ok(BoardCard.at(order, lifecycle.clock()).to_dict())


@router.post("/orders/{order_id}/status")
async def change_status(
    order_id: str,
    body: StatusChangeIn,
    tenant_id: str = Depends(get_tenant_id),
    operator: str | None = Depends(get_operator),
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
) -> dict:
    """Move an order to ``body.status`` if the state machine allows it."""
    order = await lifecycle.request_status_change(
        tenant_id, order_id, body.status, actor=operator
    )
    return ok(BoardCard.at(order, lifecycle.clock()).to_dict())


@router.get("/orders/{order_id}/history")
async def order_history(
    order_id: str,
    tenant_id: str = Depends(get_tenant_id),
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
) -> dict:
    entries = await lifecycle.history(tenant_id, order_id)
    return ok({"order_id": order_id, "history": [e.to_dict() for e in entries]})


@router.get("/stats")
async def queue_stats(
    tenant_id: str = Depends(get_tenant_id),
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
) -> dict:
    """Return how many orders wait in each active status."""
    counts = await lifecycle.queue_counts(tenant_id)
    data = {status.value: count for status, count in counts.items()}
    data["total_active"] = sum(counts.values())
    return ok(data)


@router.get(
    "/board/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_board(
    request: Request,
    page_size: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE),
    tenant_id: str = Depends(get_tenant_id),
    lifecycle: OrderLifecycleService = Depends(get_lifecycle),
) -> StreamingResponse:
    """Stream the kitchen board via SSE for one display session.

    The session polls every queue on its own timer and refetches the whole
    board whenever any terminal changes an order. Each change emits
    ``event: board`` with the full board; timers stop when the client leaves.
    """
    settings = request.app.state.settings
    hub = request.app.state.hub
    coordinator = RefreshCoordinator(
        partial(lifecycle.fetch_queue, tenant_id),
        interval=settings.kds_poll_interval_secs,
        page_size=_page_size(request, page_size),
        clock=lifecycle.clock,
    )

    async def event_gen():
        seq = 0
        changed = asyncio.Event()

        async def _mark(_view) -> None:
            changed.set()

        unsubscribe = coordinator.subscribe(_mark)
        try:
            async with hub.session(tenant_id, coordinator):
                while not await request.is_disconnected():
                    try:
                        await asyncio.wait_for(changed.wait(), KEEPALIVE_INTERVAL)
                    except asyncio.TimeoutError:
                        yield ":keepalive\n\n"
                        continue
                    changed.clear()
                    seq += 1
                    data = json.dumps(coordinator.snapshot())
                    yield f"event: board\nid: {seq}\ndata: {data}\n\n"
        finally:
            unsubscribe()

    return StreamingResponse(event_gen(), media_type="text/event-stream")
