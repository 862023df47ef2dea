"""Chat routes: WebSocket session endpoint and history query.

The WebSocket endpoint authenticates once at upgrade time, then hands the
socket to the hub for the rest of the session.
"""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, WebSocket

from application.dto import ChatMessageDTO
from application.services.chat_service import ChatApplicationService
from application.services.token_service import TokenService
from api.dependencies import get_chat_service, get_token_service
from core.exceptions import TokenExpiredException
from core.logging_config import get_logger
from core.response import success_response, Response as ApiResponse
from domain.chat.entity import USER_ID_MAX_LENGTH
from infrastructure.realtime.connection import serve_ws
from infrastructure.realtime.hub import ChatHub


logger = get_logger(__name__)

CLOSE_POLICY_VIOLATION = 1008
CLOSE_INTERNAL_ERROR = 1011

router = APIRouter(prefix="/chat", tags=["Chat"])


def _extract_token(ws: WebSocket) -> str | None:
    # Prefer query param, fallback to header `Authorization: Bearer x`
    token = ws.query_params.get("token")
    if token:
        return token
    auth = ws.headers.get("authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return None


def get_chat_hub_from_app(ws: WebSocket) -> ChatHub | None:
    return getattr(ws.app.state, "chat_hub", None)


@router.websocket("/ws")
async def chat_websocket(
    ws: WebSocket,
    token_service: TokenService = Depends(get_token_service),
) -> None:
    await ws.accept()

    token = _extract_token(ws)
    if not token:
        logger.info("chat_ws_rejected", reason="missing_token")
        await ws.close(code=CLOSE_POLICY_VIOLATION)
        return
    try:
        user_id = await token_service.verify_access_token(token)
    except TokenExpiredException:
        user_id = None
    if not user_id:
        logger.info("chat_ws_rejected", reason="invalid_token")
        await ws.close(code=CLOSE_POLICY_VIOLATION)
        return
    if len(user_id) > USER_ID_MAX_LENGTH:
        # 超出 chat_messages.user_id 列宽
        logger.info("chat_ws_rejected", reason="identity_too_long", length=len(user_id))
        await ws.close(code=CLOSE_POLICY_VIOLATION)
        return

    hub = get_chat_hub_from_app(ws)
    if hub is None or not hub.running:
        logger.error("chat_ws_rejected", reason="hub_unavailable", user_id=user_id)
        await ws.close(code=CLOSE_INTERNAL_ERROR)
        return

    await serve_ws(hub, ws, user_id)


@router.get("/messages", summary="聊天历史", response_model=ApiResponse[List[ChatMessageDTO]])
async def get_messages(
    limit: int = Query(0, description="条数，<=0 时使用默认值"),
    offset: int = Query(0, description="偏移量"),
    service: ChatApplicationService = Depends(get_chat_service),
):
    """按时间倒序返回聊天消息（直接查询存储，不经过 Hub）"""
    messages = await service.get_messages(limit=limit, offset=offset)
    return success_response(data=messages)
