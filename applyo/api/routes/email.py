"""Protected email endpoint -- send one outreach email."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from applyo.api.schemas import SendEmailRequest, SendEmailResponse
from applyo.auth import get_current_user
from applyo.database import User
from applyo.exceptions import MailerError
from applyo.mailer import Mailer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/protected/email", tags=["email"])


def get_mailer() -> Mailer:
    return Mailer()


@router.post("/send", response_model=SendEmailResponse)
def send_email(
    body: SendEmailRequest,
    user: User = Depends(get_current_user),
    mailer: Mailer = Depends(get_mailer),
):
    try:
        message_id = mailer.send(body.to, body.subject, body.body, reply_to=body.replyTo)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MailerError as e:
        raise HTTPException(status_code=502, detail=str(e))

    logger.info(f"User {user.id} sent an email to {body.to}")
    return {"success": True, "messageId": message_id}
