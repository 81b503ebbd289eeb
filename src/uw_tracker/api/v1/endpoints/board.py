# src/uw_tracker/api/v1/endpoints/board.py
"""Board endpoints: sorted view, status toggles and counter adjustments."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from uw_tracker.api.v1.dependencies import BoardServiceDep, CurrentActorDep
from uw_tracker.core.errors import STORAGE_ERROR_MESSAGE
from uw_tracker.schemas.board import (
    BoardResponse,
    CounterUpdate,
    MutationResponse,
    NotificationResponse,
    StatusUpdate,
    WorkerViewResponse,
)
from uw_tracker.services.authorization import can_view_counter
from uw_tracker.services.board import BoardService, MutationResult
from uw_tracker.services.ledger import Actor, Ledger, Status, total_assigned
from uw_tracker.services.sorting import sort_for_display

router = APIRouter(prefix="/board", tags=["board"])


def _board_response(
    board: BoardService, actor: Actor, ledger: Ledger | None = None
) -> BoardResponse:
    ledger = ledger if ledger is not None else board.ledger
    views = sort_for_display(ledger, actor)
    return BoardResponse(
        workers=[
            WorkerViewResponse(
                id=view.id,
                display_name=view.display_name,
                status=view.status.value,
                counter=view.counter,
                status_time=view.status_time,
                status_timestamp=view.status_timestamp,
                is_own=view.is_own,
                can_edit_status=view.can_edit_status,
            )
            for view in views
        ],
        last_reset_date=ledger.last_reset_epoch,
        total_assigned=total_assigned(ledger) if can_view_counter(actor) else None,
    )


def _mutation_response(
    board: BoardService, actor: Actor, result: MutationResult
) -> MutationResponse | JSONResponse:
    body = MutationResponse(
        ok=result.ok,
        changed=result.changed,
        notification=(
            NotificationResponse(
                message=result.notification.message,
                level=result.notification.level,
                ttl_seconds=result.notification.ttl_seconds,
            )
            if result.notification
            else None
        ),
        board=_board_response(board, actor, result.ledger),
    )
    if result.ok:
        return body
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": STORAGE_ERROR_MESSAGE, **body.model_dump(mode="json")},
    )


@router.get("", response_model=BoardResponse)
async def get_board(actor: CurrentActorDep, board: BoardServiceDep) -> BoardResponse:
    """Load the board (applying the daily reset if due) and return it sorted."""
    ledger = await board.load()
    return _board_response(board, actor, ledger)


@router.post("/refresh", response_model=BoardResponse)
async def refresh_board(actor: CurrentActorDep, board: BoardServiceDep) -> BoardResponse:
    """Discard the local copy and reload from the store."""
    ledger = await board.load()
    return _board_response(board, actor, ledger)


@router.post(
    "/{worker_id}/status",
    response_model=MutationResponse,
    responses={503: {"model": MutationResponse}},
)
async def toggle_status(
    worker_id: str,
    payload: StatusUpdate,
    actor: CurrentActorDep,
    board: BoardServiceDep,
) -> MutationResponse | JSONResponse:
    """Set green/red on a worker, or clear it when it is already active."""
    result = await board.toggle_status(actor, worker_id, Status(payload.status))
    return _mutation_response(board, actor, result)


@router.post(
    "/{worker_id}/counter",
    response_model=MutationResponse,
    responses={503: {"model": MutationResponse}},
)
async def adjust_counter(
    worker_id: str,
    payload: CounterUpdate,
    actor: CurrentActorDep,
    board: BoardServiceDep,
) -> MutationResponse | JSONResponse:
    """Adjust a worker's assigned-file counter (assigners only)."""
    result = await board.adjust_counter(actor, worker_id, payload.delta)
    return _mutation_response(board, actor, result)
