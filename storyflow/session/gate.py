"""
Request Gate
============

At most one generation request per artifact key may be in flight. A second
trigger for a busy key is rejected, never queued and replayed later.
"""

import logging
from typing import Optional, FrozenSet, Set, Union

from ..models.stage import Stage

logger = logging.getLogger(__name__)


def request_key(stage: Union[Stage, str], index: Optional[int] = None) -> str:
    """
    Build the gate key of an artifact.

    Examples:
        request_key(Stage.SCRIPT)      -> "script"
        request_key(Stage.SCENES, 2)   -> "scenes:2"
    """
    name = stage.name.lower() if isinstance(stage, Stage) else str(stage).lower()
    return name if index is None else f"{name}:{index}"


class RequestGate:
    """Tracks which artifact keys have a request in flight."""

    def __init__(self):
        self._in_flight: Set[str] = set()

    def begin(self, key: str) -> bool:
        """
        Mark ``key`` as in flight.

        Returns:
            True if the caller may issue the request, False if one is already outstanding
        """
        if key in self._in_flight:
            logger.warning(f"Request for {key} already in progress")
            return False
        self._in_flight.add(key)
        logger.debug(f"Request for {key} admitted")
        return True

    def end(self, key: str) -> None:
        """Clear the in-flight mark, whatever the outcome."""
        self._in_flight.discard(key)

    def is_in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def in_flight(self) -> FrozenSet[str]:
        return frozenset(self._in_flight)

    def __len__(self) -> int:
        return len(self._in_flight)
