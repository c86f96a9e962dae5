from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authcore.core.database import Base
from authcore.models.authorization import OAuth2AuthorizationRow  # noqa: F401
from authcore.schemas.authorization import AuthorizationRecord, TokenEntry
from authcore.schemas.client import ClientInfo
from authcore.services.authorization_store import AuthorizationStore
from authcore.services.client_directory import InMemoryClientDirectory

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_record(authorization_id: str = "authz-1", attributes=None, **tokens) -> AuthorizationRecord:
    return AuthorizationRecord(
        id=authorization_id,
        registered_client_id="registration-1",
        principal_name="alice",
        authorization_grant_type="authorization_code",
        attributes=attributes or {},
        **tokens,
    )


def access_token(value: str = "access-1", scopes=("read",), **fields) -> TokenEntry:
    fields.setdefault("issued_at", T0)
    fields.setdefault("expires_at", T0 + timedelta(hours=1))
    fields.setdefault("token_type", "Bearer")
    return TokenEntry(value=value, scopes=frozenset(scopes), **fields)


@pytest.fixture
def session_factory():
    return _make_session_factory()


@pytest.fixture
def directory():
    return InMemoryClientDirectory([ClientInfo(id="registration-1", client_id="client-1")])


@pytest.fixture
def store(directory, session_factory):
    return AuthorizationStore(directory, session_factory=session_factory)
