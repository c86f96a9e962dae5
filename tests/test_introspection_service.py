from datetime import timedelta

import pytest

from authcore.core.exceptions import PreconditionError
from authcore.schemas.authorization import TokenEntry, TokenTypeHint
from authcore.services.introspection_service import IntrospectionEngine, IntrospectionService
from authcore.services.token_invalidator import token_invalidator

from conftest import T0, access_token, make_record


def _service(store, at=T0 + timedelta(seconds=10)):
    return IntrospectionService(store, IntrospectionEngine(store.client_directory, clock=lambda: at))


def test_introspects_without_hint(store):
    store.save(make_record(access_token=access_token()))

    result = _service(store).introspect_token("access-1", "client-2")

    assert result.active is True
    assert result.client_id == "client-1"
    assert result.scopes == frozenset({"read"})


def test_wrong_hint_falls_back_to_full_lookup(store):
    store.save(make_record(access_token=access_token()))

    result = _service(store).introspect_token("access-1", "client-2", TokenTypeHint.REFRESH_TOKEN)

    assert result.active is True


def test_unknown_token_is_inactive_with_no_claims(store):
    store.save(make_record(access_token=access_token()))

    result = _service(store).introspect_token("missing", "client-2", "access_token")

    assert result.model_dump(exclude_none=True) == {"active": False}


def test_state_value_resolves_a_record_but_is_not_a_token(store):
    store.save(make_record(attributes={"state": "state-1"}, access_token=access_token()))

    result = _service(store).introspect_token("state-1", "client-2")

    assert result.active is False
    assert result.client_id is None


def test_invalidated_token_is_inactive_but_still_stored(store):
    record = make_record(
        access_token=access_token(),
        refresh_token=TokenEntry(value="refresh-1", issued_at=T0),
    )
    store.save(record)
    store.save(token_invalidator.invalidate(record, "access-1"))

    result = _service(store).introspect_token("access-1", "client-2")

    assert result.active is False
    assert store.find_by_token("access-1") is not None
    assert _service(store).introspect_token("refresh-1", "client-2").active is True


def test_default_engine_uses_store_client_directory(store):
    service = IntrospectionService(store)

    assert service.engine.client_directory is store.client_directory


def test_empty_token_is_rejected(store):
    with pytest.raises(PreconditionError):
        _service(store).introspect_token("", "client-2")
