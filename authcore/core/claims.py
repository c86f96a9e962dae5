"""Claim map codec for attributes and per-token metadata.

Maps are persisted as JSON text. Two read paths exist: ``decode`` is lenient
and used whenever a stored row is loaded, ``decode_strict`` fails loudly and is
meant for client-supplied input.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from authcore.core.exceptions import SerializationError

logger = logging.getLogger(__name__)


def _encode_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class ClaimCodec:
    """Serialize structured claim maps to and from flat text."""

    @staticmethod
    def encode(claims: Optional[Dict[str, Any]], field: str = "claims") -> str:
        try:
            return json.dumps(claims or {}, ensure_ascii=False, default=_encode_default)
        except (TypeError, ValueError) as exc:
            raise SerializationError(field, f"Unable to encode field '{field}': {exc}") from exc

    @staticmethod
    def _parse(text: str, field: str) -> Dict[str, Any]:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SerializationError(field, f"Malformed JSON in field '{field}': {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise SerializationError(
                field, f"Field '{field}' must hold a JSON object, got {type(parsed).__name__}"
            )
        return parsed

    @staticmethod
    def decode(text: Optional[str], field: str = "claims") -> Dict[str, Any]:
        """
        Lenient decode used on store reads.

        A null, blank or unparseable value yields an empty map so that one
        corrupt column never prevents the rest of a record from loading.
        """
        if text is None or not text.strip():
            return {}
        try:
            return ClaimCodec._parse(text, field)
        except SerializationError as exc:
            logger.warning(f"Discarding unreadable {field}: {exc.message}")
            return {}

    @staticmethod
    def decode_strict(text: Optional[str], field: str = "claims") -> Dict[str, Any]:
        """
        Strict decode for caller-supplied input.

        Raises:
            SerializationError: If the text is non-empty but not a JSON object
        """
        if text is None or not text.strip():
            return {}
        return ClaimCodec._parse(text, field)


claim_codec = ClaimCodec()
