"""Public contact form router."""

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DB_DEPENDENCY, NOTIFICATIONS_DEPENDENCY
from ..core.exceptions import ProblemDetailsException
from ..schemas.messaging import ContactMessageResponse, CreateContactMessageRequest
from ..services.message_service import ContactService
from ..services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contact", tags=["contact"])


@router.post("", response_model=ContactMessageResponse, status_code=201)
async def submit_contact_message(
    request: CreateContactMessageRequest,
    db: AsyncSession = DB_DEPENDENCY,
    notifications: NotificationService = NOTIFICATIONS_DEPENDENCY,
) -> JSONResponse:
    """
    Store a message from the contact form.

    The host is notified by email; the message is kept even if that fails.
    """
    contact_service = ContactService(db, notifications)

    try:
        message = await contact_service.create_message(request)
        return JSONResponse(status_code=201, content=ContactMessageResponse.model_validate(message).to_json())

    except ProblemDetailsException:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in contact message submission",
            extra={"sender": str(request.email), "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e
