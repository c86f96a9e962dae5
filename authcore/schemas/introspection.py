"""Token introspection result schema (RFC 7662)"""

from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict


def _epoch(value: Optional[datetime]) -> Optional[int]:
    return int(value.timestamp()) if value is not None else None


class IntrospectionResult(BaseModel):
    """
    Verdict and claim set for one introspected token.

    An inactive result may still carry the claims resolved before the
    failing check; ``to_response`` never exposes them.
    """

    model_config = ConfigDict(frozen=True)

    active: bool
    client_id: Optional[str] = None
    token_type: Optional[str] = None
    scopes: Optional[FrozenSet[str]] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    not_before: Optional[datetime] = None
    subject: Optional[str] = None
    audience: Optional[List[str]] = None
    issuer: Optional[str] = None
    jti: Optional[str] = None

    @property
    def scope(self) -> Optional[str]:
        if self.scopes is None:
            return None
        return " ".join(sorted(self.scopes))

    def to_response(self) -> Dict[str, Any]:
        """Render the RFC 7662 response members"""
        if not self.active:
            return {"active": False}
        response = {
            "active": True,
            "client_id": self.client_id,
            "token_type": self.token_type,
            "scope": self.scope,
            "iat": _epoch(self.issued_at),
            "exp": _epoch(self.expires_at),
            "nbf": _epoch(self.not_before),
            "sub": self.subject,
            "aud": self.audience,
            "iss": self.issuer,
            "jti": self.jti,
        }
        return {key: value for key, value in response.items() if value is not None}
