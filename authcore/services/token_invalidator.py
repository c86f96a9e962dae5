"""Logical token invalidation."""

from __future__ import annotations

import logging

from authcore.schemas.authorization import AuthorizationRecord

logger = logging.getLogger(__name__)


class TokenInvalidator:
    """Mark a token inside an authorization as no longer usable."""

    @staticmethod
    def invalidate(record: AuthorizationRecord, token_value: str) -> AuthorizationRecord:
        """
        Return a copy of ``record`` with the slot holding ``token_value`` invalidated

        The token, its timestamps and metadata are kept so introspection can
        still report it as inactive. A value held by no slot returns the
        record unchanged.
        """
        found = record.find_token(token_value)
        if found is None:
            return record
        slot, entry = found
        if entry.invalidated:
            return record
        logger.debug(f"Invalidating {slot.value} of authorization {record.id}")
        return record.with_token(slot, entry.invalidate())


token_invalidator = TokenInvalidator()
