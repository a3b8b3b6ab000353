"""Broadcast gateway between the game session and Socket.IO.

Keeps the set of live connections and their identities so the game
session can address endpoints without knowing about the transport.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class Connection:
    sid: str
    login: Optional[str] = None
    display_name: Optional[str] = None
    profile_image: Optional[str] = None
    is_admin: bool = False

    @property
    def kind(self) -> str:
        if self.is_admin:
            return 'moderator'
        if self.login:
            return 'participant'
        return 'overlay'


class Gateway:
    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace
        self._connections: Dict[str, Connection] = {}

    # ---- connection bookkeeping ----

    def admit(self, sid: str, identity: Optional[Dict[str, Any]] = None, is_admin: bool = False) -> Connection:
        identity = identity or {}
        conn = Connection(
            sid=sid,
            login=identity.get('login') or None,
            display_name=identity.get('displayName'),
            profile_image=identity.get('profileImage'),
            is_admin=is_admin,
        )
        self._connections[sid] = conn
        return conn

    def release(self, sid: str) -> Optional[Connection]:
        return self._connections.pop(sid, None)

    def is_connected(self, sid: str) -> bool:
        return sid in self._connections

    def connection(self, sid: str) -> Optional[Connection]:
        return self._connections.get(sid)

    def moderator_sids(self) -> List[str]:
        return [sid for sid, conn in self._connections.items() if conn.is_admin]

    def __len__(self):
        return len(self._connections)

    # ---- delivery ----

    def _emit(self, event: str, payload, **kwargs) -> None:
        if payload is None:
            self.socketio.emit(event, namespace=self.namespace, **kwargs)
        else:
            self.socketio.emit(event, payload, namespace=self.namespace, **kwargs)

    def send_to_all(self, event: str, payload=None) -> None:
        self._emit(event, payload)

    def send_to_one(self, sid: str, event: str, payload=None) -> bool:
        if sid not in self._connections:
            return False
        self._emit(event, payload, to=sid)
        return True

    def send_to_moderators(self, event: str, payload=None) -> int:
        sent = 0
        for sid in self.moderator_sids():
            if self.send_to_one(sid, event, payload):
                sent += 1
        return sent
