from .base import Base, JSONDocument
from .captured_message import CapturedMessage

__all__ = ["Base", "JSONDocument", "CapturedMessage"]
