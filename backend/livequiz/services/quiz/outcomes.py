"""What a room transition produced.

State machine operations never emit or write to the database themselves.
They return an ``Outcome`` listing the events to deliver and the audit
records to persist; the Socket.IO layer carries both out.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional


@dataclass(frozen=True)
class Emission:
    event: str
    payload: Any
    # None broadcasts to the whole room; otherwise a single connection id
    to: Optional[str] = None

    @property
    def is_broadcast(self) -> bool:
        return self.to is None


@dataclass(frozen=True)
class SessionCreated:
    room_code: str
    quiz_id: Any
    instructor_id: Any


@dataclass(frozen=True)
class SessionStatusChanged:
    room_code: str
    status: str
    at: datetime


@dataclass(frozen=True)
class ResponseRecorded:
    room_code: str
    participant_name: str
    question_id: Any
    answer: Any
    is_correct: bool
    response_time_ms: int
    points: int


@dataclass
class Outcome:
    room_code: str
    emissions: List[Emission] = field(default_factory=list)
    records: List[Any] = field(default_factory=list)

    def broadcast(self, event: str, payload: Any) -> 'Outcome':
        self.emissions.append(Emission(event, payload))
        return self

    def unicast(self, sid: Optional[str], event: str, payload: Any) -> 'Outcome':
        if sid:
            self.emissions.append(Emission(event, payload, to=sid))
        return self

    def record(self, record: Any) -> 'Outcome':
        self.records.append(record)
        return self

    def events(self) -> List[str]:
        return [emission.event for emission in self.emissions]

    def find(self, event: str) -> Optional[Emission]:
        for emission in self.emissions:
            if emission.event == event:
                return emission
        return None
