"""Pydantic schemas for the message retrieval API."""

from typing import List

from pydantic import BaseModel, Field

from ..domain.mail.models import MessageRecord


class MessageListResponse(BaseModel):
    """Every captured message, in receipt order"""
    messages: List[MessageRecord] = Field(default_factory=list)


class ClearResponse(BaseModel):
    cleared: int = Field(..., description="Number of messages removed")


class RemovedResponse(BaseModel):
    removed: int = Field(..., description="Number of messages removed")


class ErrorResponse(BaseModel):
    error: str
    message: str
