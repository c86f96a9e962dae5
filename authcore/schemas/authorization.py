"""Authorization aggregate and token entry schemas"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Metadata keys under which the store folds first-class token fields
CLAIMS_METADATA_KEY = "metadata.token.claims"
INVALIDATED_METADATA_KEY = "metadata.token.invalidated"
RESERVED_METADATA_KEYS = frozenset({CLAIMS_METADATA_KEY, INVALIDATED_METADATA_KEY})


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return a timezone-aware UTC datetime, treating naive values as UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TokenSlot(str, Enum):
    """The four token kinds an authorization can hold"""
    AUTHORIZATION_CODE = "authorization_code"
    ACCESS_TOKEN = "access_token"
    ID_TOKEN = "id_token"
    REFRESH_TOKEN = "refresh_token"

    @property
    def column_prefix(self) -> str:
        if self is TokenSlot.ID_TOKEN:
            return "oidc_id_token"
        return self.value

    @property
    def requires_expiry(self) -> bool:
        return self in (TokenSlot.AUTHORIZATION_CODE, TokenSlot.ACCESS_TOKEN)


class TokenTypeHint(str, Enum):
    """Lookup hints accepted by the authorization store"""
    STATE = "state"
    AUTHORIZATION_CODE = "authorization_code"
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"

    @classmethod
    def parse(cls, value: str) -> Optional["TokenTypeHint"]:
        """Resolve a hint string, or None when the hint is not searchable"""
        if value == "code":
            return cls.AUTHORIZATION_CODE
        try:
            return cls(value)
        except ValueError:
            return None


class TokenEntry(BaseModel):
    """One issued token within an authorization"""

    model_config = ConfigDict(frozen=True)

    value: str
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    # Claim set of the token (full OIDC claims for ID tokens)
    claims: Optional[Dict[str, Any]] = None
    invalidated: bool = False
    # Access tokens only
    token_type: Optional[str] = None
    scopes: FrozenSet[str] = frozenset()

    @field_validator("value")
    @classmethod
    def _value_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("token value cannot be empty")
        return value

    @field_validator("metadata")
    @classmethod
    def _no_reserved_keys(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        reserved = RESERVED_METADATA_KEYS.intersection(value)
        if reserved:
            raise ValueError(f"metadata keys {sorted(reserved)} are reserved")
        return value

    @field_validator("issued_at", "expires_at")
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @model_validator(mode="after")
    def _expiry_after_issue(self) -> "TokenEntry":
        if self.issued_at and self.expires_at and self.expires_at < self.issued_at:
            raise ValueError("expires_at must not be before issued_at")
        return self

    def invalidate(self) -> "TokenEntry":
        return self.model_copy(update={"invalidated": True})


class AuthorizationRecord(BaseModel):
    """
    One grant and the tokens issued for it.

    The record is immutable; changes produce a new record which callers
    persist through the authorization store.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    registered_client_id: str
    principal_name: str
    authorization_grant_type: str
    attributes: Dict[str, Any] = Field(default_factory=dict)

    authorization_code: Optional[TokenEntry] = None
    access_token: Optional[TokenEntry] = None
    id_token: Optional[TokenEntry] = None
    refresh_token: Optional[TokenEntry] = None

    @model_validator(mode="after")
    def _check_slots(self) -> "AuthorizationRecord":
        for slot, entry in self.tokens():
            if slot.requires_expiry and (entry.issued_at is None or entry.expires_at is None):
                raise ValueError(f"{slot.value} requires issued_at and expires_at")
            if slot is not TokenSlot.ACCESS_TOKEN and (entry.token_type or entry.scopes):
                raise ValueError(f"{slot.value} cannot carry token_type or scopes")
        return self

    @property
    def state(self) -> Optional[str]:
        value = self.attributes.get("state")
        return str(value) if value is not None else None

    def token(self, slot: TokenSlot) -> Optional[TokenEntry]:
        return getattr(self, slot.name.lower())

    def tokens(self) -> Iterator[Tuple[TokenSlot, TokenEntry]]:
        """Iterate over the non-empty token slots"""
        for slot in TokenSlot:
            entry = self.token(slot)
            if entry is not None:
                yield slot, entry

    def find_token(self, value: str) -> Optional[Tuple[TokenSlot, TokenEntry]]:
        """Locate the slot holding a token value"""
        for slot, entry in self.tokens():
            if entry.value == value:
                return slot, entry
        return None

    def with_token(self, slot: TokenSlot, entry: Optional[TokenEntry]) -> "AuthorizationRecord":
        return self.model_copy(update={slot.name.lower(): entry})
