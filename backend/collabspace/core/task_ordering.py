"""Task Ordering — pure planning for task positions within and across lists.

Invariants:
    - Pure: no IO, no async, no DB. The engine (services/) applies plans to storage
    - A plan never touches the moved task's own row; only the final placement does
    - Applying a plan to a list with unique positions keeps every list free of duplicates
    - plan_move(t, L, p) onto the task's current (L, p) is a no-op (no shifts)

Design Decisions:
    - Shifts expressed as inclusive ranges + delta: maps 1:1 onto a single
      UPDATE ... SET position = position + delta WHERE list_id = ? AND position BETWEEN ...
    - Clamp against the highest position other tasks hold after the source gap closes,
      not against the task count: lists may contain gaps after deletions
"""

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from collabspace.core.domain_types import ListId, Position, TaskId


MIN_POSITION: int = 1


@dataclass(frozen=True)
class TaskPlacement:
    """Where a task currently sits."""
    task_id: TaskId
    list_id: ListId
    position: Position


@dataclass(frozen=True)
class PositionShift:
    """Shift every task in list_id with lower <= position <= upper by delta.

    A bound of None means unbounded on that side.
    """
    list_id: ListId
    lower: int | None
    upper: int | None
    delta: int

    def covers(self, position: int) -> bool:
        if self.lower is not None and position < self.lower:
            return False
        if self.upper is not None and position > self.upper:
            return False
        return True


@dataclass(frozen=True)
class MovePlan:
    """Everything a storage layer needs to relocate one task."""
    task_id: TaskId
    source_list_id: ListId
    source_position: Position
    target_list_id: ListId
    target_position: Position
    shifts: tuple[PositionShift, ...]

    @property
    def is_cross_list(self) -> bool:
        return self.source_list_id != self.target_list_id

    @property
    def is_noop(self) -> bool:
        return (
            not self.is_cross_list
            and self.source_position == self.target_position
        )

    @property
    def affected_list_ids(self) -> tuple[ListId, ...]:
        """Lists whose positions change, ascending (stable lock order)."""
        return tuple(sorted({self.source_list_id, self.target_list_id}))


def next_position(max_position: int | None) -> Position:
    """Position for a task appended to a list whose highest position is max_position."""
    return Position((max_position or 0) + 1)


def last_position(
    other_max_position: int | None, source_position: int | None = None,
) -> Position:
    """Highest slot a moved task can take in the destination list.

    other_max_position is the highest position held by the destination's other
    tasks (None for an empty list). source_position is given only for
    intra-list moves: closing the source slot pulls every later task down one,
    so the last reachable slot is max(other_max, source).
    """
    other_max = other_max_position or 0
    if source_position is None:
        upper = other_max + 1
    else:
        upper = max(other_max, source_position)
    return Position(max(upper, MIN_POSITION))


def clamp_target_position(
    requested: int,
    other_max_position: int | None,
    source_position: int | None = None,
) -> Position:
    """Clamp a requested position into [1, last_position(...)]."""
    upper = last_position(other_max_position, source_position)
    return Position(min(max(requested, MIN_POSITION), upper))


def plan_move(
    task_id: TaskId,
    source_list_id: ListId,
    source_position: Position,
    target_list_id: ListId,
    target_position: Position,
) -> MovePlan:
    """Build the shift ranges for moving one task. target_position must already be clamped."""
    shifts: list[PositionShift] = []
    if source_list_id == target_list_id:
        if source_position < target_position:
            # close the gap, pull (source, target] down
            shifts.append(PositionShift(
                source_list_id, source_position + 1, target_position, -1,
            ))
        elif source_position > target_position:
            # open a slot, push [target, source) up
            shifts.append(PositionShift(
                source_list_id, target_position, source_position - 1, +1,
            ))
    else:
        shifts.append(PositionShift(source_list_id, source_position + 1, None, -1))
        shifts.append(PositionShift(target_list_id, target_position, None, +1))

    return MovePlan(
        task_id=task_id,
        source_list_id=source_list_id,
        source_position=source_position,
        target_list_id=target_list_id,
        target_position=target_position,
        shifts=tuple(shifts),
    )


def find_duplicate_positions(positions: Iterable[int]) -> list[int]:
    """Positions held by more than one task, ascending."""
    return sorted(p for p, n in Counter(positions).items() if n > 1)
