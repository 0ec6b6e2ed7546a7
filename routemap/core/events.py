"""Event Trail — append-only audit records for one request's execution.

Invariants:
    - Events are appended in occurrence order, never reordered or deduplicated
    - Event payloads are diagnostic only; no control flow reads them

Design Decisions:
    - Frozen dataclass + str Enum: serializes straight into the JSON failure record
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventName(str, Enum):
    CALL = "CALL"
    RETURN = "RETURN"
    ERROR = "ERROR"
    DONE = "DONE"


@dataclass(frozen=True)
class Event:
    name: EventName
    payload: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Render as {NAME: payload}, the shape used in the failure record."""
        return {self.name.value: self.payload}
