"""Watch-page endpoints used by the public page shell."""

from fastapi import APIRouter, Request

from watchcast.api.v1.schemas.base import ApiOut
from watchcast.api.v1.schemas.watch import (
    PlayerMessageIn,
    PlayerMessageOut,
    SelectSegmentIn,
    WatchSessionOut,
)
from watchcast.domain.watch import WatchPageService, WatchSessionRegistry
from watchcast.schemas import PlaybackMode
from watchcast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

router = APIRouter(prefix="/watch")


def _registry(request: Request) -> WatchSessionRegistry:
    return request.app.state.watch_registry


def _session_out(watch_session_id: str, service: WatchPageService) -> WatchSessionOut:
    session = service.session
    sequential = session.mode == PlaybackMode.SEQUENTIAL
    current = session.current_recording
    return WatchSessionOut(
        watch_session_id=watch_session_id,
        slug=service.slug,
        mode=session.mode,
        cursor=session.cursor if sequential else None,
        current_recording_id=current.id if current else None,
        complete=session.complete,
        view=service.view_state(),
    )


@router.post("/{slug}/sessions")
async def open_watch_session(slug: str, request: Request) -> ApiOut[WatchSessionOut]:
    """Open a watch session for an event.

    Raises:
        404: Event not found (initial fetch failed)
    """
    watch_session_id, service = await _registry(request).open(slug)
    return ApiOut[WatchSessionOut](results=_session_out(watch_session_id, service))


@router.get("/sessions/{watch_session_id}")
async def get_watch_session(watch_session_id: str, request: Request) -> ApiOut[WatchSessionOut]:
    service = _registry(request).get(watch_session_id)
    return ApiOut[WatchSessionOut](results=_session_out(watch_session_id, service))


@router.post("/sessions/{watch_session_id}/player-message")
async def post_player_message(
    watch_session_id: str,
    body: PlayerMessageIn,
    request: Request,
) -> ApiOut[PlayerMessageOut]:
    service = _registry(request).get(watch_session_id)
    accepted = service.handle_player_message(body.origin, body.data, asset_id=body.asset_id)
    return ApiOut[PlayerMessageOut](results=PlayerMessageOut(accepted=accepted))


@router.post("/sessions/{watch_session_id}/segment")
async def select_segment(
    watch_session_id: str,
    body: SelectSegmentIn,
    request: Request,
) -> ApiOut[WatchSessionOut]:
    """Jump to a playlist entry during sequential replay.

    Raises:
        400: Not in sequential replay, or index out of range
    """
    service = _registry(request).get(watch_session_id)
    if not service.select_segment(body.index):
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg=f"Cannot select segment {body.index} in mode {service.mode}",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    return ApiOut[WatchSessionOut](results=_session_out(watch_session_id, service))


@router.post("/sessions/{watch_session_id}/replay")
async def replay_from_start(watch_session_id: str, request: Request) -> ApiOut[WatchSessionOut]:
    service = _registry(request).get(watch_session_id)
    if not service.replay_from_start():
        raise AppError(
            errcode=AppErrorCode.E_INVALID_REQUEST,
            errmesg=f"Nothing to replay in mode {service.mode}",
            status_code=HttpStatusCode.BAD_REQUEST,
        )
    return ApiOut[WatchSessionOut](results=_session_out(watch_session_id, service))


@router.delete("/sessions/{watch_session_id}")
async def close_watch_session(watch_session_id: str, request: Request) -> ApiOut[str]:
    _registry(request).close(watch_session_id)
    return ApiOut[str](results="OK")
