"""Task Ordering Engine — creates, moves, updates and deletes tasks inside one unit of work.

Invariants:
    - Positions are written only here; every list keeps unique positions
    - A move runs read → lock → shift → conditional relocate → duplicate check in one
      transaction; any failure rolls the whole sequence back
    - Lost updates surface as ConflictError; the engine never retries
    - Authorization is NOT checked here (services/membership_guard.py does that first)

Design Decisions:
    - Unit of work injected at construction: the engine never reaches for a global
      session, tests drive it with an in-memory repository
    - Planning delegated to core/task_ordering.py (pure); this module only sequences IO
    - update_task routes list/position changes through the move protocol: there is no
      path that writes a raw position
"""

import logging

from collabspace.core.domain_types import ListId, TaskId, UserId
from collabspace.core.errors import (
    ConflictError, ErrorContext, NotFoundError, ValidationError,
)
from collabspace.core.repository_protocols import TaskRepository, UnitOfWork
from collabspace.core.task_ordering import (
    MovePlan,
    clamp_target_position,
    find_duplicate_positions,
    last_position,
    next_position,
    plan_move,
)

logger = logging.getLogger(__name__)

PAYLOAD_FIELDS: tuple[str, ...] = ("title", "description", "assigned_to", "due_date")


class TaskOrderingEngine:
    """Maintains task order within lists and relocates tasks between them."""

    def __init__(self, unit_of_work: UnitOfWork):
        self._uow = unit_of_work

    async def create_task(
        self, list_id: ListId | None, attrs: dict, created_by: UserId,
    ) -> dict:
        """Append a task to list_id at max(position) + 1."""
        title = attrs.get("title")
        if list_id is None:
            raise ValidationError("listId and title are required", field="listId")
        if not title or not str(title).strip():
            raise ValidationError("listId and title are required", field="title")

        async with self._uow() as repo:
            if await repo.list_board_id(list_id) is None:
                raise NotFoundError(
                    "List", list_id, ErrorContext(list_id=list_id),
                )
            await repo.lock_lists((list_id,))
            position = next_position(await repo.max_position(list_id))
            task = await repo.insert_task(list_id, position, {
                "title": str(title).strip(),
                "description": attrs.get("description"),
                "assigned_to": attrs.get("assigned_to"),
                "due_date": attrs.get("due_date"),
                "created_by": created_by,
            })
            await self._check_unique_positions(repo, (list_id,), task["id"])

        logger.info(
            f"Task {task['id']} created in list {list_id} at position {position}",
            extra={"task_id": task["id"], "list_id": list_id, "position": position},
        )
        return task

    async def move_task(
        self, task_id: TaskId, target_list_id: ListId, target_position: int,
    ) -> dict:
        """Relocate task_id to target_position (clamped) in target_list_id."""
        async with self._uow() as repo:
            plan = await self._move(
                repo, task_id, target_list_id, target_position,
            )
            task = await repo.get_task(task_id)
        logger.info(
            f"Task {task_id} moved from list {plan.source_list_id} "
            f"pos {plan.source_position} to list {task['list_id']} "
            f"pos {task['position']}",
            extra={
                "task_id": task_id, "list_id": task["list_id"],
                "position": task["position"],
            },
        )
        return task

    async def update_task(
        self,
        task_id: TaskId,
        fields: dict,
        target_list_id: ListId | None = None,
        target_position: int | None = None,
    ) -> dict:
        """Write payload fields; list/position changes go through the move protocol.

        A position without a list moves within the current list. A different list
        without a position appends to the end of that list; naming the current
        list without a position leaves the task where it is.
        """
        payload = {k: v for k, v in fields.items() if k in PAYLOAD_FIELDS}
        if "title" in payload:
            if not payload["title"] or not str(payload["title"]).strip():
                raise ValidationError("title cannot be empty", field="title")
            payload["title"] = str(payload["title"]).strip()

        async with self._uow() as repo:
            placement = await repo.get_placement(task_id, lock=True)
            if placement is None:
                raise NotFoundError("Task", task_id, ErrorContext(task_id=task_id))
            await repo.update_fields(task_id, payload)
            list_changes = (
                target_list_id is not None and target_list_id != placement.list_id
            )
            if list_changes or target_position is not None:
                await self._move(
                    repo,
                    task_id,
                    target_list_id if list_changes else placement.list_id,
                    target_position,
                )
            task = await repo.get_task(task_id)

        logger.info(
            f"Task {task_id} updated ({', '.join(sorted(payload)) or 'no fields'})",
            extra={"task_id": task_id},
        )
        return task

    async def delete_task(self, task_id: TaskId) -> None:
        """Remove a task. Siblings keep their positions (gaps allowed)."""
        async with self._uow() as repo:
            if not await repo.delete_task(task_id):
                raise NotFoundError("Task", task_id, ErrorContext(task_id=task_id))
        logger.info(f"Task {task_id} deleted", extra={"task_id": task_id})

    # ─── Internals ───────────────────────────────────────────────

    async def _move(
        self,
        repo: TaskRepository,
        task_id: TaskId,
        target_list_id: ListId,
        target_position: int | None,
    ) -> MovePlan:
        placement = await repo.get_placement(task_id, lock=True)
        if placement is None:
            raise NotFoundError("Task", task_id, ErrorContext(task_id=task_id))

        target_board_id = await repo.list_board_id(target_list_id)
        if target_board_id is None:
            raise NotFoundError(
                "List", target_list_id, ErrorContext(list_id=target_list_id),
            )
        intra_list = placement.list_id == target_list_id
        if not intra_list:
            if await repo.list_board_id(placement.list_id) != target_board_id:
                raise ValidationError(
                    "targetListId must belong to the task's board",
                    field="targetListId",
                    context=ErrorContext(task_id=task_id, list_id=target_list_id),
                )

        await repo.lock_lists(
            tuple(sorted({placement.list_id, target_list_id})),
        )

        other_max = await repo.max_position(target_list_id, exclude_task_id=task_id)
        source_position = placement.position if intra_list else None
        if target_position is None:
            position = last_position(other_max, source_position)
        else:
            position = clamp_target_position(
                target_position, other_max, source_position,
            )

        plan = plan_move(
            task_id, placement.list_id, placement.position,
            target_list_id, position,
        )
        if plan.is_noop:
            return plan

        for shift in plan.shifts:
            await repo.shift_positions(shift)

        if not await repo.relocate(placement, target_list_id, position):
            logger.warning(
                f"Task {task_id} left position {placement.position} mid-move",
                extra={"task_id": task_id, "error_code": "CONFLICT"},
            )
            raise ConflictError(
                "Task was moved concurrently, reload and retry",
                ErrorContext(task_id=task_id),
            )
        await self._check_unique_positions(repo, plan.affected_list_ids, task_id)
        return plan

    async def _check_unique_positions(
        self, repo: TaskRepository, list_ids: tuple[ListId, ...], task_id: TaskId,
    ) -> None:
        for list_id in list_ids:
            duplicates = find_duplicate_positions(
                await repo.positions_in_list(list_id),
            )
            if duplicates:
                logger.warning(
                    f"Duplicate positions {duplicates} in list {list_id}",
                    extra={
                        "task_id": task_id, "list_id": list_id,
                        "error_code": "CONFLICT",
                    },
                )
                raise ConflictError(
                    "Concurrent modification produced conflicting positions, reload and retry",
                    ErrorContext(task_id=task_id, list_id=list_id),
                )
