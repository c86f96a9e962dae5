"""Authorization persistence service.

Maps ``AuthorizationRecord`` aggregates onto the flat ``oauth2_authorization``
row and back. Each public operation runs in its own session.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session, sessionmaker

from authcore.core.claims import claim_codec
from authcore.core.database import get_session_factory
from authcore.core.exceptions import (
    AmbiguousTokenError,
    DataIntegrityError,
    PreconditionError,
    UnresolvedClientError,
)
from authcore.models.authorization import OAuth2AuthorizationRow
from authcore.schemas.authorization import (
    CLAIMS_METADATA_KEY,
    INVALIDATED_METADATA_KEY,
    AuthorizationRecord,
    TokenEntry,
    TokenSlot,
    TokenTypeHint,
    as_utc,
)
from authcore.services.client_directory import ClientDirectory

logger = logging.getLogger(__name__)

SCOPE_DELIMITER = ","
BEARER = "Bearer"

Row = OAuth2AuthorizationRow

# Columns searched per hint; an omitted hint searches all of them.
_LOOKUP_COLUMNS = {
    TokenTypeHint.STATE: Row.state,
    TokenTypeHint.AUTHORIZATION_CODE: Row.authorization_code_value,
    TokenTypeHint.ACCESS_TOKEN: Row.access_token_value,
    TokenTypeHint.REFRESH_TOKEN: Row.refresh_token_value,
}


def _require_text(value: Optional[str], name: str) -> None:
    if not value or not str(value).strip():
        raise PreconditionError(f"{name} cannot be empty")


def _to_column_time(value: Optional[datetime]) -> Optional[datetime]:
    value = as_utc(value)
    return value.replace(tzinfo=None) if value else None


def _parse_scopes(value: Optional[str]) -> frozenset:
    if value is None:
        return frozenset()
    return frozenset(scope.strip() for scope in value.split(SCOPE_DELIMITER) if scope.strip())


def _normalize_token_type(value: Optional[str]) -> Optional[str]:
    """Canonicalize bearer; other token types (e.g. DPoP) are kept as stored, not dropped"""
    if value and value.lower() == BEARER.lower():
        return BEARER
    return value


class AuthorizationStore:
    """Durable storage and token lookup for authorizations."""

    def __init__(
        self,
        client_directory: ClientDirectory,
        session_factory: Optional[sessionmaker] = None,
    ):
        self.client_directory = client_directory
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        factory = self._session_factory or get_session_factory()
        db = factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def save(self, record: AuthorizationRecord) -> None:
        """
        Insert or fully overwrite an authorization

        The existence check and the write are not isolated from concurrent
        writers of the same id; callers serialize writes per authorization.
        """
        if record is None:
            raise PreconditionError("authorization cannot be None")
        _require_text(record.id, "id")

        with self._session() as db:
            row = db.query(Row).filter(Row.id == record.id).first()
            if row is None:
                row = Row(id=record.id)
                db.add(row)
                logger.debug(f"Inserting authorization {record.id}")
            else:
                logger.debug(f"Updating authorization {record.id}")
            self._write_row(record, row)
            db.commit()

    def remove(self, record: AuthorizationRecord) -> None:
        if record is None:
            raise PreconditionError("authorization cannot be None")
        _require_text(record.id, "id")

        with self._session() as db:
            deleted = db.query(Row).filter(Row.id == record.id).delete(synchronize_session=False)
            db.commit()
        logger.debug(f"Removed authorization {record.id} ({deleted} row(s))")

    def find_by_id(self, authorization_id: str) -> Optional[AuthorizationRecord]:
        _require_text(authorization_id, "id")
        return self._find_by(Row.id == authorization_id)

    def find_by_token(
        self,
        token: str,
        token_type_hint: Union[TokenTypeHint, str, None] = None,
    ) -> Optional[AuthorizationRecord]:
        """
        Find the authorization owning a token value

        Without a hint the state, authorization code, access token and refresh
        token columns are all searched. ID tokens are never searchable.

        Returns:
            The owning authorization, or None if nothing matches or the hint
            names a kind that cannot be searched
        """
        _require_text(token, "token")

        if token_type_hint is None:
            hints = list(_LOOKUP_COLUMNS)
        else:
            hint = TokenTypeHint.parse(token_type_hint)
            if hint is None:
                logger.debug(f"Token type hint '{token_type_hint}' is not searchable")
                return None
            hints = [hint]

        token_bytes = token.encode("utf-8")
        criteria = [
            _LOOKUP_COLUMNS[hint] == (token if hint is TokenTypeHint.STATE else token_bytes)
            for hint in hints
        ]
        return self._find_by(or_(*criteria))

    def _find_by(self, criterion) -> Optional[AuthorizationRecord]:
        with self._session() as db:
            rows = db.query(Row).filter(criterion).limit(2).all()
            if not rows:
                return None
            if len(rows) > 1:
                ids = [row.id for row in rows]
                logger.error(f"Token lookup matched several authorizations: {ids}")
                raise AmbiguousTokenError(ids)
            return self._read_row(rows[0])

    # Row mapping

    def _write_row(self, record: AuthorizationRecord, row: Row) -> None:
        row.registered_client_id = record.registered_client_id
        row.principal_name = record.principal_name
        row.authorization_grant_type = record.authorization_grant_type
        row.attributes = claim_codec.encode(record.attributes, "attributes")
        state = record.state
        row.state = state if state and state.strip() else None

        for slot in TokenSlot:
            entry = record.token(slot)
            prefix = slot.column_prefix
            setattr(row, f"{prefix}_value", entry.value.encode("utf-8") if entry else None)
            setattr(row, f"{prefix}_issued_at", _to_column_time(entry.issued_at) if entry else None)
            setattr(row, f"{prefix}_expires_at", _to_column_time(entry.expires_at) if entry else None)
            setattr(
                row,
                f"{prefix}_metadata",
                claim_codec.encode(self._fold_metadata(entry), f"{prefix}_metadata") if entry else None,
            )

        access_token = record.access_token
        row.access_token_type = access_token.token_type if access_token else None
        row.access_token_scopes = (
            SCOPE_DELIMITER.join(sorted(access_token.scopes)) if access_token else None
        )

    @staticmethod
    def _fold_metadata(entry: TokenEntry) -> Dict[str, Any]:
        metadata = dict(entry.metadata)
        if entry.claims is not None:
            metadata[CLAIMS_METADATA_KEY] = entry.claims
        if entry.invalidated:
            metadata[INVALIDATED_METADATA_KEY] = True
        return metadata

    @staticmethod
    def _unfold_metadata(text: Optional[str], field: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]], bool]:
        metadata = claim_codec.decode(text, field)
        claims = metadata.pop(CLAIMS_METADATA_KEY, None)
        if claims is not None and not isinstance(claims, dict):
            logger.warning(f"Discarding non-map claims in {field}")
            claims = None
        invalidated = bool(metadata.pop(INVALIDATED_METADATA_KEY, False))
        return metadata, claims, invalidated

    def _read_row(self, row: Row) -> AuthorizationRecord:
        client = self.client_directory.find_by_id(row.registered_client_id)
        if client is None:
            logger.error(
                f"Authorization {row.id} references unknown registered client {row.registered_client_id}"
            )
            raise UnresolvedClientError(row.registered_client_id)

        attributes = claim_codec.decode(row.attributes, "attributes")
        if row.state and row.state.strip():
            attributes.setdefault("state", row.state)

        tokens = {}
        for slot in TokenSlot:
            prefix = slot.column_prefix
            value = getattr(row, f"{prefix}_value")
            if value is None:
                continue
            metadata, claims, invalidated = self._unfold_metadata(
                getattr(row, f"{prefix}_metadata"), f"{prefix}_metadata"
            )
            fields = dict(
                value=bytes(value).decode("utf-8"),
                issued_at=getattr(row, f"{prefix}_issued_at"),
                expires_at=getattr(row, f"{prefix}_expires_at"),
                metadata=metadata,
                claims=claims,
                invalidated=invalidated,
            )
            if slot is TokenSlot.ACCESS_TOKEN:
                fields["token_type"] = _normalize_token_type(row.access_token_type)
                fields["scopes"] = _parse_scopes(row.access_token_scopes)
            tokens[slot.name.lower()] = fields

        try:
            return AuthorizationRecord(
                id=row.id,
                registered_client_id=row.registered_client_id,
                principal_name=row.principal_name,
                authorization_grant_type=row.authorization_grant_type,
                attributes=attributes,
                **tokens,
            )
        except ValidationError as exc:
            logger.error(f"Authorization {row.id} could not be loaded: {exc}")
            raise DataIntegrityError(
                f"Authorization '{row.id}' violates its invariants",
                details={"id": row.id},
            ) from exc
