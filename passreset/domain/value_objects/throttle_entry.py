"""Send cooldown entry for one identity."""

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ThrottleEntry:
    """Cooldown of one identity, in the clock units of its owner (seconds).

    An entry whose ``cooldown_until`` has passed is treated as absent.
    """

    identity: str
    cooldown_until: float

    def is_active(self, now: float) -> bool:
        return now < self.cooldown_until

    def remaining_seconds(self, now: float) -> Optional[int]:
        """Remaining whole seconds, rounded up; None once elapsed."""
        if not self.is_active(now):
            return None
        return max(1, math.ceil(self.cooldown_until - now))
