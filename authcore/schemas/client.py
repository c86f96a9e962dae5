"""Registered client schemas"""

from typing import FrozenSet

from pydantic import BaseModel, ConfigDict


class ClientInfo(BaseModel):
    """Client metadata as resolved by the client directory"""

    model_config = ConfigDict(frozen=True)

    id: str
    client_id: str
    client_name: str = ""
    scopes: FrozenSet[str] = frozenset()
