"""FastAPI dependencies resolving the application context.

Usage:
    @router.get("/messages")
    def list_messages(store: Store):
        return store.list_all()
"""

from typing import Annotated

from fastapi import Depends, Request

from .context import AppContext
from .domain.mail.ports import MailStorePort
from .infrastructure.ingest.acceptor import SmtpAcceptor


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_store(context: Annotated[AppContext, Depends(get_context)]) -> MailStorePort:
    return context.store


def get_acceptor(context: Annotated[AppContext, Depends(get_context)]) -> SmtpAcceptor:
    return context.acceptor


Context = Annotated[AppContext, Depends(get_context)]
Store = Annotated[MailStorePort, Depends(get_store)]
Acceptor = Annotated[SmtpAcceptor, Depends(get_acceptor)]
