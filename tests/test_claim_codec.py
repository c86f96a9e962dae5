import logging
from datetime import datetime, timezone

import pytest

from authcore.core.claims import ClaimCodec, claim_codec
from authcore.core.exceptions import SerializationError


def test_nested_values_survive_encode_and_decode():
    claims = {
        "state": "xyz",
        "count": 3,
        "ratio": 0.5,
        "enabled": True,
        "missing": None,
        "nested": {"aud": ["api-1", "api-2"], "inner": {"deep": [1, {"x": "ü"}]}},
    }
    assert claim_codec.decode(claim_codec.encode(claims)) == claims


def test_encode_writes_sets_as_sorted_lists_and_datetimes_as_iso():
    text = claim_codec.encode(
        {"scopes": {"write", "read"}, "at": datetime(2026, 1, 1, tzinfo=timezone.utc)}
    )
    decoded = claim_codec.decode(text)
    assert decoded["scopes"] == ["read", "write"]
    assert decoded["at"] == "2026-01-01T00:00:00+00:00"


def test_encode_rejects_unserializable_values_with_field_name():
    with pytest.raises(SerializationError) as exc_info:
        claim_codec.encode({"handle": object()}, "access_token_metadata")
    assert exc_info.value.field == "access_token_metadata"


@pytest.mark.parametrize("text", [None, "", "   "])
def test_decode_of_empty_text_is_empty_map(text):
    assert ClaimCodec.decode(text) == {}
    assert ClaimCodec.decode_strict(text) == {}


def test_lenient_decode_degrades_malformed_text_to_empty_map(caplog):
    with caplog.at_level(logging.WARNING, logger="authcore.core.claims"):
        assert claim_codec.decode("{not json", "attributes") == {}
    assert "attributes" in caplog.text


def test_lenient_decode_rejects_non_object_json():
    assert claim_codec.decode("[1, 2, 3]", "attributes") == {}


def test_strict_decode_reports_offending_field():
    with pytest.raises(SerializationError) as exc_info:
        claim_codec.decode_strict("{not json", "request_claims")
    assert exc_info.value.field == "request_claims"
    assert exc_info.value.details == {"field": "request_claims"}


def test_strict_decode_requires_a_json_object():
    with pytest.raises(SerializationError):
        claim_codec.decode_strict('"just a string"', "request_claims")
