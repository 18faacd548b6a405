"""
Turn order, the current-player pointer and attack debt.
"""

import logging
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class TurnScheduler:
    """
    Owns the turn order of one room.

    `turns_remaining` counts the slots the current player still owes,
    including the one in progress. Debt collected from attacks is drained
    into it the moment a player becomes current.
    """

    def __init__(self, is_alive: Callable[[str], bool]):
        self.is_alive = is_alive
        self.turn_order: List[str] = []
        self.current_index = 0
        self.turns_remaining = 0
        self.extra_turn_debt: Dict[str, int] = {}

    def reset(self, order: List[str]):
        self.turn_order = list(order)
        self.current_index = 0
        self.turns_remaining = 0
        self.extra_turn_debt = {}

    def current_participant(self) -> Optional[str]:
        if not self.turn_order or not 0 <= self.current_index < len(self.turn_order):
            return None
        return self.turn_order[self.current_index]

    def next_alive_index(self, from_index: int) -> int:
        """First alive index strictly after from_index, wrapping around; -1 if nobody is alive."""
        n = len(self.turn_order)
        for step in range(1, n + 1):
            idx = (from_index + step) % n
            if self.is_alive(self.turn_order[idx]):
                return idx
        return -1

    def next_alive_participant(self) -> Optional[str]:
        idx = self.next_alive_index(self.current_index)
        return self.turn_order[idx] if idx != -1 else None

    def set_current(self, idx: int):
        self.current_index = idx
        pid = self.current_participant()
        if pid is None:
            self.turns_remaining = 1
            return
        debt = self.extra_turn_debt.pop(pid, 0)
        self.turns_remaining = 1 + debt
        logger.debug(f"Turn -> {pid} ({self.turns_remaining} slot(s))")

    def start(self) -> bool:
        """Give the first turn to the first alive participant in join order."""
        idx = self.next_alive_index(len(self.turn_order) - 1)
        if idx == -1:
            return False
        self.set_current(idx)
        return True

    def consume_one_turn(self) -> bool:
        """
        Spend one slot of the current player.

        Returns False when the slot ran out and nobody alive is left to take
        over, in which case the caller ends the round.
        """
        self.turns_remaining -= 1
        if self.turns_remaining > 0:
            return True
        idx = self.next_alive_index(self.current_index)
        if idx == -1:
            return False
        self.set_current(idx)
        return True

    def end_current_turn(self) -> bool:
        """Drop every remaining slot of the current player and move on."""
        self.turns_remaining = 1
        return self.consume_one_turn()

    def add_debt(self, pid: str, n: int = 1):
        self.extra_turn_debt[pid] = self.extra_turn_debt.get(pid, 0) + n

    def clear_debt(self, pid: str):
        self.extra_turn_debt.pop(pid, None)

    def add_participant(self, pid: str):
        if pid not in self.turn_order:
            self.turn_order.append(pid)

    def remove_participant(self, pid: str) -> bool:
        """
        Drop pid from the order, keeping the pointer on the same participant.

        Returns True when pid was the current player; the pointer then sits on
        whoever followed them and heal() must run.
        """
        self.clear_debt(pid)
        if pid not in self.turn_order:
            return False
        idx = self.turn_order.index(pid)
        was_current = idx == self.current_index
        self.turn_order.pop(idx)
        if idx < self.current_index:
            self.current_index -= 1
        if self.turn_order:
            self.current_index %= len(self.turn_order)
        else:
            self.current_index = 0
        return was_current

    def heal(self, force: bool = False) -> bool:
        """
        Move the pointer to the first alive participant at or after it.

        Runs when the pointed-at participant vanished or was eliminated.
        Returns False if nobody is alive.
        """
        pid = self.current_participant()
        if not force and pid is not None and self.is_alive(pid):
            return True
        if not self.turn_order:
            return False
        idx = self.next_alive_index(self.current_index - 1)
        if idx == -1:
            return False
        logger.debug(f"Turn pointer healed from {pid} to {self.turn_order[idx]}")
        self.set_current(idx)
        return True
