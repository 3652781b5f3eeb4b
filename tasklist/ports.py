"""
Ports (gateways) around the task use case.

The use case is consumed through TaskInputGateway and talks to storage
through TaskOutputGateway, so the transport and the store stay swappable.
"""

from typing import List, Optional, Protocol

from .models.outcome import TaskOutcome
from .models.task import Task


class TaskInputGateway(Protocol):
    """Operations offered to the API layer."""

    def create(self, task: Task) -> TaskOutcome: ...

    def find_all(self) -> List[Task]: ...

    def find_by_id(self, task_id: str) -> Optional[Task]: ...

    def update(self, task_id: str, task: Task) -> TaskOutcome: ...

    def delete(self, task_id: str) -> bool: ...


class TaskOutputGateway(Protocol):
    """Storage operations required by the use case.

    Implementations assign ``id`` and timestamps, and treat a malformed id
    as "not found".
    """

    def save(self, task: Task) -> Task: ...

    def find_all(self) -> List[Task]: ...

    def find_by_id(self, task_id: str) -> Optional[Task]: ...

    def update(self, task: Task) -> Task: ...

    def delete_by_id(self, task_id: str) -> None: ...

    def find_by_title_ignore_case(self, title: str) -> Optional[Task]: ...
