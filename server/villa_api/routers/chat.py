"""Guest chat router."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import AdminUser, CurrentUser, DB_DEPENDENCY
from ..models.user import User
from ..schemas.messaging import AdminChatMessageRequest, ChatMessageResponse, CreateChatMessageRequest
from ..services.message_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def _to_json(messages) -> list:
    return [ChatMessageResponse.model_validate(m).to_json() for m in messages]


@router.get("/chat-messages", response_model=List[ChatMessageResponse])
async def get_my_thread(user: User = CurrentUser, db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """Return the caller's conversation with the host and mark the host's replies read."""
    messages = await ChatService(db).get_thread(user.id, mark_admin_messages_read=True)
    return JSONResponse(status_code=200, content=_to_json(messages))


@router.post("/chat-messages", response_model=ChatMessageResponse, status_code=201)
async def post_message(
    request: CreateChatMessageRequest,
    user: User = CurrentUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    message = await ChatService(db).post_guest_message(user, request.message)
    return JSONResponse(status_code=201, content=ChatMessageResponse.model_validate(message).to_json())


@router.get("/admin/chat-messages", response_model=List[ChatMessageResponse])
async def list_chat_messages(
    user_id: Optional[int] = Query(None, alias="userId", description="Only this guest's thread"),
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    chat_service = ChatService(db)
    if user_id is not None:
        messages = await chat_service.get_thread(user_id)
    else:
        messages = await chat_service.list_all()
    return JSONResponse(status_code=200, content=_to_json(messages))


@router.post("/admin/chat-messages", response_model=ChatMessageResponse, status_code=201)
async def reply_to_guest(
    request: AdminChatMessageRequest,
    admin: User = AdminUser,
    db: AsyncSession = DB_DEPENDENCY,
) -> JSONResponse:
    message = await ChatService(db).post_admin_message(request.user_id, request.message)
    logger.info("Host replied in chat", extra={"user_id": request.user_id, "admin_id": admin.id})
    return JSONResponse(status_code=201, content=ChatMessageResponse.model_validate(message).to_json())
