"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, WorkspaceId, BoardId, ListId, TaskId wrap integer primary keys
    - Position is a 1-based integer, unique within a list (gaps allowed)
    - All valid roles encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)
WorkspaceId = NewType("WorkspaceId", int)
BoardId = NewType("BoardId", int)
ListId = NewType("ListId", int)
TaskId = NewType("TaskId", int)


# ─── Value Types ─────────────────────────────────────────────────

Position = NewType("Position", int)  # 1-based, unique per list


# ─── Enums ───────────────────────────────────────────────────────

class SystemRole(str, Enum):
    """Account-wide role — maps to users.role."""
    ADMIN = "admin"
    EMPLOYEE = "employee"


class MemberRole(str, Enum):
    """Role inside one workspace — maps to workspace_members.role."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


MANAGER_ROLES: frozenset[MemberRole] = frozenset({MemberRole.OWNER, MemberRole.ADMIN})

# Lists created with every new board, in list-position order
DEFAULT_LIST_NAMES: tuple[str, ...] = ("To Do", "In Progress", "Done")
