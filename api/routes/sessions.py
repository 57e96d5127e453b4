"""
Session Routes
==============

Chat history management.
"""

from fastapi import APIRouter, Request

from api.schemas import SessionClearedResponse

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])


@router.delete(
    "/{session_id}",
    response_model=SessionClearedResponse,
    summary="Clear a session's chat history",
)
async def clear_session(session_id: str, request: Request) -> SessionClearedResponse:
    cleared = request.app.state.history.clear(session_id)
    return SessionClearedResponse(session_id=session_id, cleared=cleared)
