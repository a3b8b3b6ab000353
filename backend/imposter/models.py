from dataclasses import dataclass, field
from typing import Any, Optional

from flask_login import UserMixin


@dataclass
class Participant:
    id: str
    name: str
    profile_image: Optional[str] = None
    stream_id: Optional[str] = None
    score: int = 0
    image: Any = None
    # Stable login of the identity that joined; never sent to clients
    login: Optional[str] = field(default=None, compare=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'profileImage': self.profile_image,
            'streamId': self.stream_id,
            'score': self.score,
            'image': self.image,
        }


class User(UserMixin):
    """An identity handed to us by the identity provider.

    Only what the game needs is kept: the login name used for access
    checks and the display fields passed through to the player page.
    """

    def __init__(self, login, display_name=None, profile_image=None):
        self.login = (login or '').strip().lower()
        self.display_name = display_name or login
        self.profile_image = profile_image or ''

    def get_id(self):
        return self.login

    def to_dict(self):
        return {
            'login': self.login,
            'displayName': self.display_name,
            'profileImage': self.profile_image,
        }


class UserStore:
    """In-memory identities keyed by login, for the Flask-Login user loader."""

    def __init__(self):
        self._users = {}

    def remember(self, user: User) -> User:
        self._users[user.login] = user
        return user

    def get(self, login) -> Optional[User]:
        if not login:
            return None
        return self._users.get(str(login).lower())

    def forget(self, login) -> None:
        self._users.pop(str(login).lower(), None)
