import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional


def coerce_role_count(value, default: int = 1) -> int:
    """Number of special roles requested for a round.

    Absent or non-numeric requests fall back to ``default``; an explicit 0
    means no special roles. Negative requests clamp to 0.
    """
    if value is None or isinstance(value, bool):
        return max(0, default)
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return max(0, default)
    return max(0, count)


@dataclass
class Round:
    primary_task: str = ''
    secondary_task: str = ''
    special_ids: List[str] = field(default_factory=list)
    tasks: Dict[str, str] = field(default_factory=dict)
    roles_revealed: bool = False

    def summary(self):
        return {
            'questionInno': self.primary_task,
            'questionOut': self.secondary_task,
            'imposterIds': list(self.special_ids),
        }


class RoundEngine:
    """Owns the current round: hidden-role selection, tasks, reveals.

    There is no terminal state; each start_round replaces the previous
    round and starts a fresh secret.
    """

    def __init__(self, rng: Optional[random.Random] = None, default_role_count: int = 1):
        self.rng = rng or random.Random()
        self.default_role_count = default_role_count
        self.current: Optional[Round] = None

    def start_round(self, primary_task, secondary_task, special_role_count, participant_ids: Iterable[str]) -> Round:
        ids = list(dict.fromkeys(participant_ids))
        count = coerce_role_count(special_role_count, self.default_role_count)
        special = self.rng.sample(ids, k=min(count, len(ids))) if ids else []
        chosen = set(special)
        rnd = Round(
            primary_task=primary_task,
            secondary_task=secondary_task,
            special_ids=special,
            tasks={pid: (secondary_task if pid in chosen else primary_task) for pid in ids},
        )
        self.current = rnd
        return rnd

    def reveal_roles(self) -> List[str]:
        if self.current is None:
            return []
        self.current.roles_revealed = True
        return list(self.current.special_ids)

    def reveal_task(self):
        if self.current is None:
            return None
        return self.current.primary_task

    def task_for(self, participant_id: str) -> Optional[str]:
        if self.current is None:
            return None
        return self.current.tasks.get(participant_id)

    def summary(self):
        if self.current is None:
            return None
        return self.current.summary()

    def rename_participant(self, old_id: str, new_id: str) -> bool:
        """Carry a round slot over to a new id. An id that already holds a slot is left alone."""
        rnd = self.current
        if rnd is None or old_id not in rnd.tasks or new_id in rnd.tasks:
            return False
        rnd.tasks[new_id] = rnd.tasks.pop(old_id)
        rnd.special_ids = [new_id if pid == old_id else pid for pid in rnd.special_ids]
        return True
