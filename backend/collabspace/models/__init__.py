"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Workspace is the tenant root; boards, lists and tasks are reached through it

Design Decisions:
    - One file per aggregate for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from collabspace.models.user import User  # noqa: F401
from collabspace.models.workspace import Workspace, WorkspaceMember  # noqa: F401
from collabspace.models.board import Board, BoardList  # noqa: F401
from collabspace.models.task import Task  # noqa: F401
