"""Static weekly grid: slot order, blocks and the overlap predicate.

Slots are compared by their position in ``TIME_SLOTS_ORDER``; the morning and
afternoon blocks are not contiguous (lunch gap 11:00-13:00).
"""

from __future__ import annotations

from datetime import time
from typing import List, Tuple

from ..core.enums import DayOfWeek, TimeSlot

TIME_SLOTS_ORDER: Tuple[TimeSlot, ...] = (
    TimeSlot.SLOT_7_8,
    TimeSlot.SLOT_8_9,
    TimeSlot.SLOT_9_10,
    TimeSlot.SLOT_10_11,
    TimeSlot.SLOT_13_14,
    TimeSlot.SLOT_14_15,
    TimeSlot.SLOT_15_16,
    TimeSlot.SLOT_16_17,
)

MORNING_BLOCK: Tuple[TimeSlot, ...] = TIME_SLOTS_ORDER[:4]
AFTERNOON_BLOCK: Tuple[TimeSlot, ...] = TIME_SLOTS_ORDER[4:]

DAYS_ORDER: Tuple[DayOfWeek, ...] = tuple(DayOfWeek)


def slot_index(slot: TimeSlot) -> int:
    return TIME_SLOTS_ORDER.index(TimeSlot(slot))


def day_index(day: DayOfWeek) -> int:
    return DAYS_ORDER.index(DayOfWeek(day))


def overlaps(start_a: TimeSlot, duration_a: int, start_b: TimeSlot, duration_b: int) -> bool:
    """True iff the closed slot-index intervals of A and B intersect."""

    a0 = slot_index(start_a)
    a1 = a0 + int(duration_a) - 1
    b0 = slot_index(start_b)
    b1 = b0 + int(duration_b) - 1
    return a0 <= b1 and a1 >= b0


def remaining_slots_in_block(start_slot: TimeSlot) -> int:
    """Slots from ``start_slot`` (inclusive) to the end of its block."""

    slot = TimeSlot(start_slot)
    block = MORNING_BLOCK if slot in MORNING_BLOCK else AFTERNOON_BLOCK
    return len(block) - block.index(slot)


def slot_bounds(slot: TimeSlot) -> Tuple[time, time]:
    start_s, end_s = TimeSlot(slot).value.split("-")
    return time.fromisoformat(start_s), time.fromisoformat(end_s)


def ordered_slots() -> List[TimeSlot]:
    return list(TIME_SLOTS_ORDER)


def days_of_week() -> List[DayOfWeek]:
    return list(DAYS_ORDER)
