"""Database reachability status enumeration."""

from enum import Enum


class DBStatus(Enum):
    """Reachability of a monitored database target."""

    UP = "up"
    DOWN = "down"

    def to_gauge_value(self) -> int:
        """
        Convert status to the value exposed on the status gauge.

        Returns:
            int: 0 when the target is up, 1 when it is down
        """
        return {
            DBStatus.UP: 0,
            DBStatus.DOWN: 1
        }[self]
