# lifecycle.py — Task status state machine
#
#   pending ──▶ in-progress ──▶ completed
#      ▲             ▲               │
#      └─────────────┴───────────────┘  (reopening is allowed)
#
# completed_at is stamped on the way into "completed" and never cleared.
from datetime import datetime
from typing import Optional

from models import Task, TaskStatus, utcnow

INITIAL_STATUS = TaskStatus.PENDING


def initial_status(requested: Optional[TaskStatus] = None) -> TaskStatus:
    return requested or INITIAL_STATUS


def enters_completion(previous: Optional[TaskStatus], new: TaskStatus) -> bool:
    return new == TaskStatus.COMPLETED and previous != TaskStatus.COMPLETED


def apply_status(task: Task, new_status: TaskStatus, now: Optional[datetime] = None) -> bool:
    """Move ``task`` to ``new_status``. Returns True when it just became completed."""
    previous = TaskStatus(task.status) if task.status is not None else None
    task.status = new_status
    if enters_completion(previous, new_status):
        task.completed_at = now or utcnow()
        return True
    return False
