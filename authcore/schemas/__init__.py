"""Pydantic schemas"""

from authcore.schemas.authorization import AuthorizationRecord, TokenEntry, TokenSlot, TokenTypeHint
from authcore.schemas.client import ClientInfo
from authcore.schemas.introspection import IntrospectionResult

__all__ = [
    "AuthorizationRecord",
    "TokenEntry",
    "TokenSlot",
    "TokenTypeHint",
    "ClientInfo",
    "IntrospectionResult",
]
