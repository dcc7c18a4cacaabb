import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

HOST = 'host'
PARTICIPANT = 'participant'


@dataclass(frozen=True)
class Binding:
    room_code: str
    role: str
    name: Optional[str] = None

    @property
    def is_host(self) -> bool:
        return self.role == HOST


class ConnectionBindings:
    """Which room and identity each live connection currently speaks for."""

    def __init__(self) -> None:
        self._by_sid: Dict[str, Binding] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._by_sid)

    def get(self, sid: str) -> Optional[Binding]:
        return self._by_sid.get(sid)

    def bind_host(self, sid: str, room_code: str) -> Optional[Binding]:
        return self._bind(sid, Binding(room_code, HOST))

    def bind_participant(self, sid: str, room_code: str, name: str) -> Optional[Binding]:
        return self._bind(sid, Binding(room_code, PARTICIPANT, name))

    def _bind(self, sid: str, binding: Binding) -> Optional[Binding]:
        """Store ``binding`` and return the one it replaced, if any."""
        with self._lock:
            previous = self._by_sid.get(sid)
            self._by_sid[sid] = binding
        return previous

    def clear(self, sid: str) -> Optional[Binding]:
        with self._lock:
            return self._by_sid.pop(sid, None)

    def clear_room(self, room_code: str) -> List[str]:
        with self._lock:
            sids = [sid for sid, b in self._by_sid.items() if b.room_code == room_code]
            for sid in sids:
                del self._by_sid[sid]
        return sids

    def is_host_of(self, sid: str, room_code: str) -> bool:
        binding = self._by_sid.get(sid)
        return binding is not None and binding.is_host and binding.room_code == room_code
