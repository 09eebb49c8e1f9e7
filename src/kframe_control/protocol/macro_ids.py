"""One-byte macro correlation ids.

Macro commands carry an 8-bit id that the device echoes in its ack. Ids are
handed out round-robin over 0-255, skipping any id still inside the window
of the most recently issued ones so an ack for an older in-flight command
cannot be mistaken for a newer one.
"""

from __future__ import annotations

import logging
from collections import deque

logger = logging.getLogger(__name__)

MACRO_ID_SPACE = 256
RECENT_WINDOW_SIZE = 50


class MacroIdAllocator:
    """Round-robin id allocator with a bounded recently-used window.

    Tracks at most one id awaiting acknowledgement; ids keep rotating even
    while an ack is outstanding.
    """

    def __init__(self, window_size: int = RECENT_WINDOW_SIZE) -> None:
        self.window_size: int = window_size
        self.next_id: int = 0
        self.recently_used: deque[int] = deque()
        self.awaiting_ack: int | None = None

    def allocate(self) -> int:
        """Return the next id not present in the recently-used window.

        After a full 256-candidate sweep without a free id, the oldest id in
        the window is reclaimed.
        """
        attempts = 0
        while True:
            candidate = self.next_id
            self.next_id = (self.next_id + 1) % MACRO_ID_SPACE
            attempts += 1
            if attempts > MACRO_ID_SPACE:
                if self.recently_used:
                    candidate = self.recently_used.popleft()
                    logger.warning(
                        "Macro id space exhausted, reclaiming oldest id %d",
                        candidate,
                        extra={"macro_id": candidate, "window": len(self.recently_used)},
                    )
                break
            if candidate not in self.recently_used:
                break

        self.recently_used.append(candidate)
        if len(self.recently_used) > self.window_size:
            _ = self.recently_used.popleft()
        return candidate

    def mark_sent(self, macro_id: int) -> None:
        """Record ``macro_id`` as the single id awaiting an ack."""
        self.awaiting_ack = macro_id

    def acknowledge(self, macro_id: int) -> bool:
        """Clear the outstanding id if ``macro_id`` matches it."""
        if self.awaiting_ack is not None and self.awaiting_ack == macro_id:
            self.awaiting_ack = None
            return True
        return False

    def reset(self) -> None:
        """Forget all issued ids (full session cleanup)."""
        self.next_id = 0
        self.recently_used.clear()
        self.awaiting_ack = None

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"MacroIdAllocator(next={self.next_id}, window={len(self.recently_used)}/{self.window_size}, "
            f"awaiting_ack={self.awaiting_ack})"
        )
