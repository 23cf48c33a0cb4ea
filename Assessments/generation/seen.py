import threading
from typing import Dict, Iterable, List


class SeenFingerprintSet:
    """
    Fingerprints already accepted, in insertion order.

    One instance per batch. Check-then-insert is atomic through
    add_if_absent so parallel slots never accept the same fingerprint twice.
    """

    def __init__(self, fingerprints: Iterable[str] = ()):
        self._lock = threading.Lock()
        self._seen: Dict[str, None] = {}
        self.seed_from(fingerprints)

    def contains(self, fp: str) -> bool:
        with self._lock:
            return fp in self._seen

    def add(self, fp: str) -> None:
        with self._lock:
            self._seen.setdefault(fp, None)

    def add_if_absent(self, fp: str) -> bool:
        """Insert fp and return True, or return False if it was already seen."""
        with self._lock:
            if fp in self._seen:
                return False
            self._seen[fp] = None
            return True

    def seed_from(self, fingerprints: Iterable[str]) -> None:
        with self._lock:
            for fp in fingerprints:
                if fp:
                    self._seen.setdefault(fp, None)

    def recent(self, limit: int) -> List[str]:
        """Last `limit` fingerprints, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            return list(self._seen)[-limit:]

    def __contains__(self, fp: str) -> bool:
        return self.contains(fp)

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
