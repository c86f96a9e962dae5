"""Authorization persistence model.

One authorization is one wide row: every token slot owns its own group of
nullable columns, so a whole grant is fetched without a join.
"""

from sqlalchemy import Column, String, DateTime, Text, LargeBinary, Index

from authcore.core.database import Base


class OAuth2AuthorizationRow(Base):
    """Flat row holding an authorization and up to four token slots."""

    __tablename__ = "oauth2_authorization"

    id = Column(String(100), primary_key=True)
    registered_client_id = Column(String(100), nullable=False)
    principal_name = Column(String(200), nullable=False)
    authorization_grant_type = Column(String(100), nullable=False)
    attributes = Column(Text, nullable=True)
    state = Column(String(500), nullable=True)

    authorization_code_value = Column(LargeBinary, nullable=True)
    authorization_code_issued_at = Column(DateTime, nullable=True)
    authorization_code_expires_at = Column(DateTime, nullable=True)
    authorization_code_metadata = Column(Text, nullable=True)

    access_token_value = Column(LargeBinary, nullable=True)
    access_token_issued_at = Column(DateTime, nullable=True)
    access_token_expires_at = Column(DateTime, nullable=True)
    access_token_metadata = Column(Text, nullable=True)
    access_token_type = Column(String(100), nullable=True)
    access_token_scopes = Column(String(1000), nullable=True)

    oidc_id_token_value = Column(LargeBinary, nullable=True)
    oidc_id_token_issued_at = Column(DateTime, nullable=True)
    oidc_id_token_expires_at = Column(DateTime, nullable=True)
    oidc_id_token_metadata = Column(Text, nullable=True)

    refresh_token_value = Column(LargeBinary, nullable=True)
    refresh_token_issued_at = Column(DateTime, nullable=True)
    refresh_token_expires_at = Column(DateTime, nullable=True)
    refresh_token_metadata = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_oauth2_authorization_state", "state"),
    )

    def __repr__(self):
        return (
            f"<OAuth2AuthorizationRow(id='{self.id}', registered_client_id='{self.registered_client_id}', "
            f"principal_name='{self.principal_name}')>"
        )
