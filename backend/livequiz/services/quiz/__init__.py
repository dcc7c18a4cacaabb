"""Live quiz domain services: grading, scoring and the room state machine.

This package contains pure domain logic that should be imported by HTTP
routes and socket handlers, keeping transport concerns separated from core
game mechanics. ``audit`` and ``store`` are the only modules that touch the
database.
"""
from .errors import (  # noqa: F401
    DuplicateSubmission,
    IgnoredEvent,
    InvalidName,
    InvalidTransition,
    MalformedAnswer,
    NoActiveQuestion,
    NotRoomOwner,
    ParticipantNotFound,
    QuestionFormatError,
    QuizError,
    RoomNotFound,
)
from .grading import Grade, grade  # noqa: F401
from .questions import Question, QuestionKind, parse_question  # noqa: F401
from .scoring import DEFAULT_TIME_LIMIT_MS, score  # noqa: F401
from .session import Room, RoomRegistry, RoomStatus, normalize_code  # noqa: F401
