import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple


@dataclass
class Participant:
    id: str
    x: int
    y: int
    last_active: float

    def to_dict(self):
        return {'x': self.x, 'y': self.y}


class ConnectionRegistry:
    """Connection id -> Participant.

    Not synchronized on its own: callers go through the session lock.
    """

    def __init__(self, spawn: Tuple[int, int], clock: Callable[[], float] = time.time):
        self.spawn = spawn
        self.clock = clock
        self._participants: Dict[str, Participant] = {}

    def __contains__(self, sid: str) -> bool:
        return sid in self._participants

    def __len__(self) -> int:
        return len(self._participants)

    def upsert(self, sid: str) -> Participant:
        """Place ``sid`` at spawn with a fresh activity stamp.

        A reconnect reusing an id is handled exactly like a first join.
        """
        spawn_x, spawn_y = self.spawn
        participant = Participant(id=sid, x=spawn_x, y=spawn_y, last_active=self.clock())
        self._participants[sid] = participant
        return participant

    def get(self, sid: str) -> Optional[Participant]:
        return self._participants.get(sid)

    def remove(self, sid: str) -> Optional[Participant]:
        return self._participants.pop(sid, None)

    def move(self, sid: str, x: int, y: int) -> Optional[Participant]:
        participant = self._participants.get(sid)
        if participant is None:
            return None
        participant.x = x
        participant.y = y
        participant.last_active = self.clock()
        return participant

    def touch(self, sid: str) -> bool:
        participant = self._participants.get(sid)
        if participant is None:
            return False
        participant.last_active = self.clock()
        return True

    def ids(self):
        return list(self._participants)

    def snapshot(self) -> Dict[str, Participant]:
        # Copies, so callers never see later mutations
        return {
            sid: Participant(p.id, p.x, p.y, p.last_active)
            for sid, p in self._participants.items()
        }

    def idle_since(self, cutoff: float):
        return [sid for sid, p in self._participants.items() if p.last_active < cutoff]

    def clear(self):
        removed = list(self._participants)
        self._participants.clear()
        return removed
