"""Message record model.

A MessageRecord is the structured form of one captured email: envelope
addresses, the decoded headers in the order they were received, and the
text body. Records are immutable once built; the store only ever inserts
them or deletes them in bulk.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HeaderValue(BaseModel):
    """Single value of a (possibly repeated) header."""
    model_config = ConfigDict(frozen=True)

    value: str


class MessageHeader(BaseModel):
    """Header name with every value it was received with, in order."""
    model_config = ConfigDict(frozen=True)

    name: str
    values: List[HeaderValue] = Field(default_factory=list)

    @classmethod
    def of(cls, name: str, *values: str) -> "MessageHeader":
        return cls(name=name, values=[HeaderValue(value=v) for v in values])


class MessageRecord(BaseModel):
    """One captured email.

    The wire names of ``from_`` and ``reply_to`` are ``from`` and ``replyTo``;
    both the attribute name and the alias are accepted on input.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    date: str = Field(..., description="Date header as received (RFC 2822)")
    subject: Optional[str] = None
    to: List[str] = Field(default_factory=list, description="Recipient addresses, in order")
    from_: str = Field("", alias="from", description="Sender address")
    cc: List[str] = Field(default_factory=list)
    reply_to: Optional[str] = Field(None, alias="replyTo")
    headers: List[MessageHeader] = Field(default_factory=list)
    body: Optional[str] = None

    def to_wire(self) -> dict:
        """Serialize using the external field names."""
        return self.model_dump(by_alias=True)
