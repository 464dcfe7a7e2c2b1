import random
import threading
import time
from typing import Callable, List, Optional, Tuple

from hideseek.services.games.grid import Grid, generate_grid, grid_to_list, is_floor
from hideseek.services.games.registry import ConnectionRegistry, Participant
from hideseek.services.games.seeker import SeekerCoordinator


class GameSession:
    """Process-wide session: map, participants and the seeker assignment.

    Every mutation happens under ``lock`` so a join/leave and the seeker
    reconciliation it triggers land as one unit. The lock is re-entrant so
    handlers can hold it across a mutation and the broadcasts that follow.
    """

    def __init__(self, grid: Grid, spawn: Tuple[int, int],
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time):
        self.grid = grid
        self.spawn = spawn
        self.clock = clock
        self.lock = threading.RLock()
        self.registry = ConnectionRegistry(spawn, clock=clock)
        self.seeker = SeekerCoordinator(self.registry, rng=rng)

    @classmethod
    def from_config(cls, config) -> 'GameSession':
        size = int(config['MAP_SIZE'])
        wall_probability = float(config['WALL_PROBABILITY'])
        spawn = (int(config['SPAWN_X']), int(config['SPAWN_Y']))
        if size < 3:
            raise ValueError(f"MAP_SIZE must be at least 3, got {size}")
        if not 0.0 <= wall_probability <= 1.0:
            raise ValueError(f"WALL_PROBABILITY must be within [0, 1], got {wall_probability}")
        if not (0 <= spawn[0] < size and 0 <= spawn[1] < size):
            raise ValueError(f"spawn {spawn} is outside a {size}x{size} map")
        seed = config.get('MAP_SEED')
        rng = random.Random(seed) if seed is not None else random.Random()
        return cls(generate_grid(size, wall_probability, spawn, rng=rng), spawn)

    @property
    def size(self) -> int:
        return len(self.grid)

    @property
    def seeker_id(self) -> Optional[str]:
        return self.seeker.seeker_id

    def join(self, sid: str) -> Tuple[Participant, bool]:
        with self.lock:
            participant = self.registry.upsert(sid)
            return participant, self.seeker.reconcile()

    def leave(self, sid: str) -> Tuple[Optional[Participant], bool]:
        with self.lock:
            removed = self.registry.remove(sid)
            if removed is None:
                return None, False
            return removed, self.seeker.reconcile()

    def evict(self, sids) -> Tuple[List[str], bool]:
        """Remove several ids at once, reconciling the seeker a single time."""
        with self.lock:
            removed = [sid for sid in sids if self.registry.remove(sid) is not None]
            if not removed:
                return [], False
            return removed, self.seeker.reconcile()

    def move(self, sid: str, x: int, y: int) -> Optional[Participant]:
        """Commit a move if the destination is on the map and not a wall.

        The previous position is not consulted; any open cell is reachable
        in one move.
        """
        if not is_floor(self.grid, x, y):
            return None
        with self.lock:
            return self.registry.move(sid, x, y)

    def heartbeat(self, sid: str) -> bool:
        with self.lock:
            return self.registry.touch(sid)

    def idle_ids(self, timeout: float) -> List[str]:
        with self.lock:
            return self.registry.idle_since(self.clock() - timeout)

    def participant_ids(self) -> List[str]:
        with self.lock:
            return self.registry.ids()

    def reset(self) -> List[str]:
        """Drop every participant and the seeker; the map is kept."""
        with self.lock:
            self.seeker.clear()
            return self.registry.clear()

    def to_dict(self):
        with self.lock:
            participants = self.registry.snapshot()
            return {
                'map': grid_to_list(self.grid),
                'participants': {sid: p.to_dict() for sid, p in participants.items()},
                'seekerId': self.seeker.seeker_id,
            }
