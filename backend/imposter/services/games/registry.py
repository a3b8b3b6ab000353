from typing import Any, Dict, List, Mapping, Optional

from imposter.models import Participant


def coerce_points(value) -> int:
    """Coerce a point amount to int, truncating toward zero.

    Anything that is not a number (or a numeric string) counts as 0.
    """
    if isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


class SessionRegistry:
    """Live participants keyed by connection id.

    Pure in-memory bookkeeping: callers are responsible for broadcasting
    the roster after every mutation.
    """

    def __init__(self):
        self._participants: Dict[str, Participant] = {}

    def __len__(self):
        return len(self._participants)

    def __contains__(self, connection_id):
        return connection_id in self._participants

    def upsert(self, connection_id: str, attrs: Optional[Mapping[str, Any]] = None) -> Participant:
        if not connection_id:
            raise ValueError('connection_id is required')
        attrs = attrs or {}
        participant = Participant(
            id=connection_id,
            name=attrs.get('name'),
            profile_image=attrs.get('profileImage') or None,
            stream_id=attrs.get('streamId'),
            login=attrs.get('login'),
        )
        self._participants[connection_id] = participant
        return participant

    def remove(self, connection_id: str) -> Optional[Participant]:
        return self._participants.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[Participant]:
        return self._participants.get(connection_id)

    def ids(self) -> List[str]:
        return list(self._participants)

    def all(self) -> Dict[str, Dict[str, Any]]:
        return {pid: p.to_dict() for pid, p in self._participants.items()}

    def adjust_score(self, connection_id: str, delta) -> Optional[Participant]:
        participant = self._participants.get(connection_id)
        if participant is None:
            return None
        participant.score += coerce_points(delta)
        return participant

    def set_artifact(self, connection_id: str, payload) -> Optional[Participant]:
        participant = self._participants.get(connection_id)
        if participant is None:
            return None
        participant.image = payload
        return participant

    def clear_artifacts(self) -> None:
        for participant in self._participants.values():
            participant.image = None

    def rekey(self, old_id: str, new_id: str) -> Optional[Participant]:
        """Move an entry to a new connection id, keeping score and drawing."""
        if new_id in self._participants:
            return None
        participant = self._participants.pop(old_id, None)
        if participant is None:
            return None
        participant.id = new_id
        self._participants[new_id] = participant
        return participant

    def find_by_login(self, login: Optional[str]) -> List[str]:
        if not login:
            return []
        return [pid for pid, p in self._participants.items() if p.login == login]
