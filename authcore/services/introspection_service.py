"""Token introspection (RFC 7662) decision procedure."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

from authcore.core.exceptions import UnresolvedClientError
from authcore.schemas.authorization import (
    AuthorizationRecord,
    TokenEntry,
    TokenSlot,
    TokenTypeHint,
    as_utc,
)
from authcore.schemas.introspection import IntrospectionResult
from authcore.services.authorization_store import AuthorizationStore
from authcore.services.client_directory import ClientDirectory

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _from_epoch(seconds: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.warning(f"Ignoring out-of-range time claim: {seconds!r}")
        return None


def _claim_time(value: Any) -> Optional[datetime]:
    """Read a time claim stored as epoch seconds, ISO-8601 text or datetime"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if isinstance(value, str):
        try:
            seconds = float(value)
        except ValueError:
            seconds = None
        if seconds is not None:
            return _from_epoch(seconds)
        try:
            return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except (OverflowError, ValueError):
            logger.warning(f"Ignoring unreadable time claim: {value!r}")
    return None


def _audience(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(item) for item in value]
    return None


def _text(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


class IntrospectionEngine:
    """Decide whether a token is active and project its claims."""

    def __init__(
        self,
        client_directory: Optional[ClientDirectory] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client_directory = client_directory
        self.clock = clock

    def introspect(
        self,
        token_value: str,
        introspecting_client_id: Optional[str],
        record: Optional[AuthorizationRecord],
    ) -> IntrospectionResult:
        """
        Evaluate a token against the authorization that owns it

        Checks run in order and the first failing one makes the token
        inactive: unknown token, invalidated, expired, not yet valid.
        ``introspecting_client_id`` is not checked here; restricting who may
        introspect a token is left to the caller.
        """
        if record is None:
            logger.debug("Introspection: no authorization found")
            return IntrospectionResult(active=False)

        found = record.find_token(token_value)
        if found is None:
            logger.debug(f"Introspection: token not held by authorization {record.id}")
            return IntrospectionResult(active=False)
        slot, entry = found

        now = as_utc(self.clock())
        resolved: Dict[str, Any] = {
            "client_id": self._client_id(record),
            "issued_at": entry.issued_at,
            "expires_at": entry.expires_at,
        }

        if entry.invalidated:
            return self._inactive(record, slot, "invalidated", resolved)
        if entry.expires_at is not None and now >= entry.expires_at:
            return self._inactive(record, slot, "expired", resolved)

        claims = self._claims(record, slot, entry)
        not_before = _claim_time(claims.get("nbf"))
        if not_before is not None and not_before > now:
            return self._inactive(record, slot, "not yet valid", resolved)

        if slot is TokenSlot.ACCESS_TOKEN:
            resolved["token_type"] = entry.token_type
            resolved["scopes"] = entry.scopes
        resolved.update(
            not_before=not_before,
            subject=_text(claims.get("sub")),
            audience=_audience(claims.get("aud")),
            issuer=_text(claims.get("iss")),
            jti=_text(claims.get("jti")),
        )
        logger.debug(
            f"Introspection: {slot.value} of authorization {record.id} active "
            f"(requested by {introspecting_client_id})"
        )
        return IntrospectionResult(active=True, **resolved)

    @staticmethod
    def _inactive(
        record: AuthorizationRecord, slot: TokenSlot, reason: str, resolved: Dict[str, Any]
    ) -> IntrospectionResult:
        logger.debug(f"Introspection: {slot.value} of authorization {record.id} inactive ({reason})")
        return IntrospectionResult(active=False, **resolved)

    def _client_id(self, record: AuthorizationRecord) -> str:
        if self.client_directory is None:
            return record.registered_client_id
        client = self.client_directory.find_by_id(record.registered_client_id)
        if client is None:
            raise UnresolvedClientError(record.registered_client_id)
        return client.client_id

    @staticmethod
    def _claims(record: AuthorizationRecord, slot: TokenSlot, entry: TokenEntry) -> Dict[str, Any]:
        """Token claims, layered over the ID token claims of the same grant"""
        claims: Dict[str, Any] = {}
        id_token = record.id_token
        if slot is not TokenSlot.ID_TOKEN and id_token is not None and id_token.claims:
            claims.update(id_token.claims)
        if entry.claims:
            claims.update(entry.claims)
        return claims


class IntrospectionService:
    """Resolve a token through the store and evaluate it."""

    def __init__(self, store: AuthorizationStore, engine: Optional[IntrospectionEngine] = None):
        self.store = store
        self.engine = engine or IntrospectionEngine(store.client_directory)

    def introspect_token(
        self,
        token: str,
        introspecting_client_id: Optional[str],
        token_type_hint: Union[TokenTypeHint, str, None] = None,
    ) -> IntrospectionResult:
        record = self.store.find_by_token(token, token_type_hint)
        if record is None and token_type_hint is not None:
            # A wrong hint must not hide a valid token
            record = self.store.find_by_token(token)
        return self.engine.introspect(token, introspecting_client_id, record)
