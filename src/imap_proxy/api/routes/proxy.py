"""
Proxy endpoint - dispatches mailbox and send actions for a caller-supplied account.

Handlers are plain functions so FastAPI runs the blocking IMAP/SMTP calls in
its thread pool.
"""

from typing import Callable, Dict, Optional, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import structlog

from ...errors import MessageNotFoundError, ProxyError
from ...mailstore import mailbox
from ...models.api_models import (
    ErrorResponse,
    ListLabelsResponse,
    ListMessagesResponse,
    ProxyRequest,
    SuccessResponse,
)
from ...transport import send_email

logger = structlog.get_logger(__name__)
router = APIRouter()

ActionResult = Union[BaseModel, JSONResponse]


class InvalidRequest(Exception):
    """Request is missing or carries an invalid action parameter."""


def error_response(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def _require_uid(payload: ProxyRequest) -> int:
    if not payload.message_id:
        raise InvalidRequest("messageId is required")
    try:
        return int(payload.message_id)
    except ValueError:
        raise InvalidRequest("messageId must be a numeric UID") from None


def _list(payload: ProxyRequest, request: Request) -> ActionResult:
    messages = mailbox.list_messages(payload, max_results=payload.max_results)
    return ListMessagesResponse(messages=messages)


def _get(payload: ProxyRequest, request: Request) -> ActionResult:
    return mailbox.get_message(payload, _require_uid(payload))


def _send(payload: ProxyRequest, request: Request) -> ActionResult:
    if not payload.to or not payload.subject:
        raise InvalidRequest("to and subject are required")
    message_id = send_email(request.app.state.transporter_cache, payload)
    return SuccessResponse(success=True, id=message_id)


def _mark_read(payload: ProxyRequest, request: Request) -> ActionResult:
    mailbox.set_read(payload, _require_uid(payload), read=True)
    return SuccessResponse()


def _mark_unread(payload: ProxyRequest, request: Request) -> ActionResult:
    mailbox.set_read(payload, _require_uid(payload), read=False)
    return SuccessResponse()


def _list_labels(payload: ProxyRequest, request: Request) -> ActionResult:
    return ListLabelsResponse(labels=mailbox.list_labels(payload))


def _modify_labels(payload: ProxyRequest, request: Request) -> ActionResult:
    uid = _require_uid(payload)
    # Labels map to folders, so only the first added label is honoured
    if payload.add_label_ids:
        mailbox.move_message(payload, uid, payload.add_label_ids[0])
    return SuccessResponse()


ACTIONS: Dict[str, Callable[[ProxyRequest, Request], ActionResult]] = {
    "list": _list,
    "get": _get,
    "send": _send,
    "markRead": _mark_read,
    "markUnread": _mark_unread,
    "listLabels": _list_labels,
    "modifyLabels": _modify_labels,
}


@router.post("/api/{action}", response_model=None)
def proxy_action(action: str, payload: ProxyRequest, request: Request) -> ActionResult:
    """
    Run one mailbox action against the account carried in the request body.

    Args:
        action: list, get, send, markRead, markUnread, listLabels or modifyLabels
        payload: Account credentials and action parameters

    Returns:
        Action result, or an error payload with 400/404/500 status
    """
    if not payload.has_imap_credentials():
        return error_response(400, "Missing IMAP credentials")

    handler = ACTIONS.get(action)
    if handler is None:
        return error_response(400, "Unknown action")

    structlog.contextvars.bind_contextvars(action=action, imap_host=payload.imap_host)
    try:
        return handler(payload, request)

    except InvalidRequest as e:
        return error_response(400, str(e))

    except MessageNotFoundError as e:
        return error_response(404, e.message, e.detail)

    except ProxyError as e:
        logger.error("Proxy error", error=e.message, detail=e.detail)
        return error_response(500, e.message, e.detail)

    finally:
        structlog.contextvars.unbind_contextvars("action", "imap_host")
