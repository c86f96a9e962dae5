"""Client directory collaborator"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Protocol

from authcore.schemas.client import ClientInfo


class ClientDirectory(Protocol):
    """Resolves a registered client id to client metadata."""

    def find_by_id(self, registered_client_id: str) -> Optional[ClientInfo]:
        ...


class InMemoryClientDirectory:
    """Client directory backed by a dict, keyed by registered client id."""

    def __init__(self, clients: Iterable[ClientInfo] = ()):
        self._clients: Dict[str, ClientInfo] = {client.id: client for client in clients}

    def register(self, client: ClientInfo) -> None:
        self._clients[client.id] = client

    def unregister(self, registered_client_id: str) -> None:
        self._clients.pop(registered_client_id, None)

    def find_by_id(self, registered_client_id: str) -> Optional[ClientInfo]:
        return self._clients.get(registered_client_id)
