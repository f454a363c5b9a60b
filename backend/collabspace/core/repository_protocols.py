"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All task IO accessed through TaskRepository
    - A TaskRepository is only valid inside the unit of work that produced it

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - UnitOfWork yields the repository: commit on clean exit, rollback on any exception,
      so the ordering engine never sees a half-applied move
"""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from collabspace.core.domain_types import BoardId, ListId, TaskId
from collabspace.core.task_ordering import PositionShift, TaskPlacement


class TaskRepository(Protocol):
    """Contract for task persistence — implemented by shell."""
    async def list_board_id(self, list_id: ListId) -> BoardId | None: ...
    async def task_board_id(self, task_id: TaskId) -> BoardId | None: ...
    async def max_position(
        self, list_id: ListId, exclude_task_id: TaskId | None = None,
    ) -> int | None: ...
    async def get_placement(
        self, task_id: TaskId, lock: bool = False,
    ) -> TaskPlacement | None: ...
    async def lock_lists(self, list_ids: tuple[ListId, ...]) -> None: ...
    async def shift_positions(self, shift: PositionShift) -> int: ...
    async def relocate(
        self, expected: TaskPlacement, list_id: ListId, position: int,
    ) -> bool: ...
    async def positions_in_list(self, list_id: ListId) -> list[int]: ...
    async def insert_task(
        self, list_id: ListId, position: int, fields: dict,
    ) -> dict: ...
    async def update_fields(self, task_id: TaskId, fields: dict) -> None: ...
    async def get_task(self, task_id: TaskId) -> dict | None: ...
    async def delete_task(self, task_id: TaskId) -> bool: ...


class UnitOfWork(Protocol):
    """Transactional scope factory — one call, one transaction."""
    def __call__(self) -> AbstractAsyncContextManager[TaskRepository]: ...
