from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Status(str, Enum):
    BACKLOG = "backlog"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass
class Task:
    id: str = ""
    title: str = ""
    description: str = ""
    priority: str = ""      # Priority value, empty until defaults are filled
    status: str = ""        # Status value, empty until defaults are filled
    start_date: str = ""
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    sub_tasks: Optional[List["Task"]] = None  # None until hydrated or defaulted
