import random
from typing import Optional

from .registry import ConnectionRegistry

MIN_PARTICIPANTS = 2


class SeekerCoordinator:
    """Owns the single seeker assignment.

    ``reconcile`` must run after every join, leave or eviction. Position
    updates never change who is seeking.
    """

    def __init__(self, registry: ConnectionRegistry, rng: Optional[random.Random] = None):
        self.registry = registry
        self.rng = rng or random.Random()
        self.seeker_id: Optional[str] = None

    def reconcile(self) -> bool:
        """Re-derive the assignment from the registry; True if it changed.

        Below two participants there is no seeker. Otherwise a seeker that
        is still registered keeps the role, and a missing or departed one
        is replaced by a uniform pick over every registered id.
        """
        previous = self.seeker_id
        if len(self.registry) < MIN_PARTICIPANTS:
            self.seeker_id = None
        elif self.seeker_id is None or self.seeker_id not in self.registry:
            self.seeker_id = self.rng.choice(sorted(self.registry.ids()))
        return self.seeker_id != previous

    def clear(self) -> None:
        self.seeker_id = None
