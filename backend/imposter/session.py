"""The game session: one roster, one round, one featured stream.

Every inbound Socket.IO intent maps to one method here. Methods mutate
in-memory state synchronously under the session lock and then fan out
through the gateway. Invalid references are silent no-ops.
"""

import functools
import logging
import threading
from typing import Any, Dict, Optional

from imposter.gateway import Gateway
from imposter.services.games.access import AccessGate
from imposter.services.games.registry import SessionRegistry
from imposter.services.games.rounds import RoundEngine

SUMMARY_MODERATOR = 'moderator'
SUMMARY_BROADCAST = 'broadcast'
# The moderator console of the first release listens for updateWhitelist
ACCESS_LIST_EVENTS = ('updateAccessList', 'updateWhitelist')


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.lock:
            return method(self, *args, **kwargs)
    return wrapper


def _target_id(data, *keys):
    target = _pick(data, *keys) if isinstance(data, dict) else data
    return target if isinstance(target, str) and target else None


def _pick(data, *keys, default=None):
    if not isinstance(data, dict):
        return default
    for key in keys:
        if key in data:
            return data[key]
    return default


class GameSession:
    def __init__(
        self,
        gateway: Gateway,
        access_gate: AccessGate,
        rounds: Optional[RoundEngine] = None,
        logger: Optional[logging.Logger] = None,
        summary_visibility: str = SUMMARY_MODERATOR,
        require_admin: bool = True,
    ):
        self.gateway = gateway
        self.access_gate = access_gate
        self.registry = SessionRegistry()
        self.rounds = rounds or RoundEngine()
        self.logger = logger or logging.getLogger(__name__)
        self.summary_visibility = summary_visibility
        self.require_admin = require_admin
        self.featured_stream = None
        self.lock = threading.RLock()

    # ---- helpers ----

    def broadcast_roster(self) -> None:
        self.gateway.send_to_all('updatePlayerList', self.registry.all())

    def _deny(self, sid: str, message: str) -> None:
        self.logger.warning(f"[denied] sid={sid} {message}")
        self.gateway.send_to_one(sid, 'error', {'message': message})

    def _is_moderator(self, sid: str) -> bool:
        if not self.require_admin:
            return True
        conn = self.gateway.connection(sid)
        return conn is not None and conn.is_admin

    def _require_moderator(self, sid: str, action: str) -> bool:
        if self._is_moderator(sid):
            return True
        self._deny(sid, f'{action} is reserved for the moderator')
        return False

    def _require_administrator(self, sid: str, action: str) -> bool:
        conn = self.gateway.connection(sid)
        if conn is not None and self.access_gate.is_administrator(conn.login):
            return True
        self._deny(sid, f'{action} is reserved for the administrator')
        return False

    def _summary_recipients(self, sid: str):
        recipients = self.gateway.moderator_sids()
        if sid not in recipients:
            recipients.append(sid)
        return recipients

    def state(self) -> Dict[str, Any]:
        with self.lock:
            rnd = self.rounds.current
            return {
                'players': self.registry.all(),
                'round': self.rounds.summary(),
                'roles_revealed': bool(rnd and rnd.roles_revealed),
                'featured_stream': self.featured_stream,
                'access_list': self.access_gate.names(),
                'connections': len(self.gateway),
            }

    # ---- connection lifecycle ----

    @_locked
    def connect(self, sid: str, identity: Optional[Dict[str, Any]] = None):
        login = (identity or {}).get('login')
        conn = self.gateway.admit(sid, identity, is_admin=self.access_gate.is_administrator(login))
        self.logger.info(f"[connect] sid={sid} kind={conn.kind} login={conn.login}")
        # Late joiners get the current view right away
        self.gateway.send_to_one(sid, 'updatePlayerList', self.registry.all())
        if self.featured_stream is not None:
            self.gateway.send_to_one(sid, 'updateHost', self.featured_stream)
        return conn

    @_locked
    def connection_lost(self, sid: str) -> bool:
        """Release the connection; True when a participant awaits removal."""
        self.gateway.release(sid)
        pending = sid in self.registry
        self.logger.info(f"[disconnect] sid={sid} pending_removal={pending}")
        return pending

    @_locked
    def expire(self, sid: str) -> bool:
        """Remove the participant of a dropped connection unless it came back."""
        if self.gateway.is_connected(sid):
            return False
        if self.registry.remove(sid) is None:
            return False
        self.logger.info(f"[remove] sid={sid}")
        self.broadcast_roster()
        return True

    # ---- participant intents ----

    @_locked
    def join(self, sid: str, data) -> bool:
        conn = self.gateway.connection(sid)
        if conn is None:
            return False
        if not self.access_gate.is_allowed(conn.login):
            self._deny(sid, 'not on the access list')
            return False

        name = _pick(data, 'name', default=None) or conn.display_name
        attrs = {
            'name': name,
            'profileImage': _pick(data, 'profileImage', default=None) or conn.profile_image,
            'streamId': _pick(data, 'streamId', 'mediaStreamId'),
            'login': conn.login,
        }

        reclaimed = None
        # A connection that already holds an entry just refreshes it
        candidates = [] if sid in self.registry else self.registry.find_by_login(conn.login)
        for old_sid in candidates:
            if old_sid != sid and not self.gateway.is_connected(old_sid):
                reclaimed = self.registry.rekey(old_sid, sid)
                self.rounds.rename_participant(old_sid, sid)
                self.logger.info(f"[reclaim] login={conn.login} {old_sid} -> {sid}")
                break

        if reclaimed is not None:
            reclaimed.name = attrs['name']
            reclaimed.profile_image = attrs['profileImage'] or None
            reclaimed.stream_id = attrs['streamId']
        else:
            self.registry.upsert(sid, attrs)
            self.logger.info(f"[join] sid={sid} name={name}")
        self.broadcast_roster()

        if reclaimed is not None:
            task = self.rounds.task_for(sid)
            if task is not None:
                self.gateway.send_to_one(sid, 'newTask', task)
        return True

    @_locked
    def submit_artifact(self, sid: str, payload) -> bool:
        if self.registry.set_artifact(sid, payload) is None:
            return False
        self.broadcast_roster()
        return True

    @_locked
    def ask_question(self, sid: str, text) -> None:
        participant = self.registry.get(sid)
        conn = self.gateway.connection(sid)
        if participant is not None:
            name = participant.name
        elif conn is not None and conn.display_name:
            name = conn.display_name
        else:
            name = 'Unknown'
        message = {'id': sid, 'name': name, 'text': text}
        if not self.gateway.send_to_moderators('incomingQuestion', message):
            self.gateway.send_to_all('incomingQuestion', message)

    @_locked
    def request_task(self, sid: str) -> bool:
        task = self.rounds.task_for(sid)
        if task is None:
            return False
        return self.gateway.send_to_one(sid, 'newTask', task)

    # ---- moderator commands ----

    @_locked
    def start_round(self, sid: str, data):
        if not self._require_moderator(sid, 'startRound'):
            return None
        primary = _pick(data, 'inno', 'primaryTask', default='')
        secondary = _pick(data, 'out', 'secondaryTask', default='')
        count = _pick(data, 'count', 'specialRoleCount')

        self.registry.clear_artifacts()
        rnd = self.rounds.start_round(primary, secondary, count, self.registry.ids())
        self.logger.info(f"[round-start] players={len(rnd.tasks)} special={len(rnd.special_ids)}")

        self.gateway.send_to_all('resetOverlay')
        self.broadcast_roster()
        for pid, task in rnd.tasks.items():
            self.gateway.send_to_one(pid, 'newTask', task)

        summary = rnd.summary()
        if self.summary_visibility == SUMMARY_BROADCAST:
            self.gateway.send_to_all('roundInfoUpdate', summary)
        else:
            for recipient in self._summary_recipients(sid):
                self.gateway.send_to_one(recipient, 'roundInfoUpdate', summary)
        return rnd

    @_locked
    def request_round_info(self, sid: str) -> bool:
        if not self._require_moderator(sid, 'requestRoundInfo'):
            return False
        summary = self.rounds.summary()
        if summary is None:
            return False
        return self.gateway.send_to_one(sid, 'roundInfoUpdate', summary)

    @_locked
    def grant_points(self, sid: str, data) -> bool:
        if not self._require_moderator(sid, 'givePoints'):
            return False
        target = _target_id(data, 'id', 'participantId')
        if target is None:
            return False
        if self.registry.adjust_score(target, _pick(data, 'amount', default=0)) is None:
            return False
        self.broadcast_roster()
        return True

    @_locked
    def reveal_roles(self, sid: str):
        if not self._require_moderator(sid, 'revealRoles'):
            return None
        roles = self.rounds.reveal_roles()
        self.gateway.send_to_all('showRoles', roles)
        return roles

    @_locked
    def reveal_task(self, sid: str):
        if not self._require_moderator(sid, 'revealQuestion'):
            return None
        task = self.rounds.reveal_task() or ''
        self.gateway.send_to_all('showQuestion', task)
        return task

    @_locked
    def reveal_one(self, sid: str, data) -> bool:
        if not self._require_moderator(sid, 'revealOne'):
            return False
        target = _target_id(data, 'id', 'participantId')
        participant = self.registry.get(target) if target else None
        if participant is None or not participant.image:
            return False
        self.gateway.send_to_all('showOneAnswer', {'id': participant.id, 'image': participant.image})
        return True

    @_locked
    def set_featured_stream(self, sid: str, data) -> bool:
        if not self._require_moderator(sid, 'setHostId'):
            return False
        self.featured_stream = _pick(data, 'streamId') if isinstance(data, dict) else data
        self.gateway.send_to_all('updateHost', self.featured_stream)
        return True

    @_locked
    def answer_question(self, sid: str, data) -> bool:
        if not self._require_moderator(sid, 'adminAnswer'):
            return False
        target = _target_id(data, 'playerId', 'participantId')
        if target is None or not isinstance(data, dict):
            return False
        return self.gateway.send_to_one(target, 'hostReply', data.get('text', ''))

    @_locked
    def start_timer(self, sid: str) -> bool:
        if not self._require_moderator(sid, 'startTimer'):
            return False
        self.gateway.send_to_all('timerStart')
        return True

    @_locked
    def stop_timer(self, sid: str) -> bool:
        if not self._require_moderator(sid, 'stopTimer'):
            return False
        self.gateway.send_to_all('timerStop')
        return True

    # ---- access list (administrator only) ----

    def _announce_access_list(self) -> None:
        names = self.access_gate.names()
        for event in ACCESS_LIST_EVENTS:
            self.gateway.send_to_moderators(event, names)

    @_locked
    def add_to_access_list(self, sid: str, name) -> bool:
        if not self._require_administrator(sid, 'addToAccessList'):
            return False
        added = self.access_gate.add(name)
        if added:
            self.logger.info(f"[access-add] name={name!r}")
            self._announce_access_list()
        return added

    @_locked
    def remove_from_access_list(self, sid: str, name) -> bool:
        if not self._require_administrator(sid, 'removeFromAccessList'):
            return False
        removed = self.access_gate.remove(name)
        if removed:
            self.logger.info(f"[access-remove] name={name!r}")
        self._announce_access_list()
        return removed

    @_locked
    def query_access_list(self, sid: str) -> bool:
        if not self._require_administrator(sid, 'queryAccessList'):
            return False
        names = self.access_gate.names()
        return all([self.gateway.send_to_one(sid, event, names) for event in ACCESS_LIST_EVENTS])
