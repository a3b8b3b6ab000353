from typing import Iterable, List, Optional


def normalize_name(name) -> str:
    if name is None:
        return ''
    return str(name).strip().lower()


class AccessGate:
    """Name allow-list deciding who may join as a participant.

    The administrator is always allowed and is the only identity that may
    change the list.
    """

    def __init__(self, admin_name: str, names: Optional[Iterable[str]] = None, enabled: bool = True):
        self.admin_name = normalize_name(admin_name)
        self.enabled = enabled
        self._names: List[str] = []
        for name in names or ():
            self.add(name)

    def is_administrator(self, name) -> bool:
        return bool(self.admin_name) and normalize_name(name) == self.admin_name

    def is_allowed(self, name) -> bool:
        if not self.enabled:
            return True
        clean = normalize_name(name)
        if not clean:
            return False
        return clean == self.admin_name or clean in self._names

    def add(self, name) -> bool:
        clean = normalize_name(name)
        if not clean or clean in self._names:
            return False
        self._names.append(clean)
        return True

    def remove(self, name) -> bool:
        clean = normalize_name(name)
        if clean not in self._names:
            return False
        self._names.remove(clean)
        return True

    def names(self) -> List[str]:
        return sorted(self._names)
