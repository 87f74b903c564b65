"""Message retrieval API.

Thin, stateless mapping between HTTP requests and mail store operations.
Store errors propagate to the application's exception handlers, which turn
StoreUnavailable into a 503; no endpoint ever answers 200 with a partial
listing.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, Response, status

from ..dependencies import Acceptor, Store
from .schemas import ClearResponse, MessageListResponse, RemovedResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Messages"])


@router.get("/messages", response_model=MessageListResponse)
@router.get("/messages.json", response_model=MessageListResponse, include_in_schema=False)
def list_messages(store: Store):
    """List every captured message in receipt order."""
    return MessageListResponse(messages=store.list_all())


@router.post("/clear", response_model=ClearResponse)
def clear_messages(store: Store, acceptor: Acceptor):
    """Remove every captured message.

    The store is cleared first; the acceptor's local buffer is reset
    afterwards and a failure there is only logged. Clearing an empty store
    succeeds with ``cleared: 0``.
    """
    cleared = store.clear_all()
    try:
        acceptor.clear()
    except Exception:
        logger.exception("Store cleared but the SMTP acceptor buffer could not be reset")
    return ClearResponse(cleared=cleared)


@router.post("/truncate", response_model=RemovedResponse)
def truncate_messages(
    store: Store,
    keep: int = Query(..., ge=0, description="Number of earliest messages to keep"),
):
    """Keep the earliest ``keep`` messages and drop the rest."""
    return RemovedResponse(removed=store.truncate(keep))


@router.post("/tail", response_model=RemovedResponse)
def tail_messages(
    store: Store,
    keep: int = Query(..., ge=0, description="Number of latest messages to keep"),
):
    """Keep the latest ``keep`` messages and drop the rest."""
    return RemovedResponse(removed=store.tail(keep))


@router.get("/messages/{position}/raw")
def get_raw_message(position: int, store: Store):
    """Raw RFC 822 source of the message at ``position`` in the listing.

    Raises:
        HTTPException: 404 if there is no message at that position or its
            source was not kept
    """
    raw = store.get_raw(position)
    if raw is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found"
        )
    return Response(content=raw, media_type="message/rfc822")
