"""Question definitions as the engine sees them.

Stored questions carry a type string and a JSON-encoded correct answer whose
shape depends on that type. ``parse_question`` turns such a record into a
``Question`` holding one answer-key variant per kind, so grading can dispatch
on the key type instead of comparing type strings.
"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from .errors import QuestionFormatError

BLANK_MARKER = '[blank]'


class QuestionKind(str, Enum):
    SINGLE = 'single'
    MULTIPLE = 'multiple'
    TRUE_FALSE = 'truefalse'
    SHORT = 'short'
    FILL_BLANK = 'fillblank'


@dataclass(frozen=True)
class SingleChoiceKey:
    # None when the stored key is not an option index; such a key never matches
    index: Optional[int]


@dataclass(frozen=True)
class MultipleChoiceKey:
    indices: Optional[FrozenSet[int]]


@dataclass(frozen=True)
class TrueFalseKey:
    value: bool


@dataclass(frozen=True)
class ShortAnswerKey:
    accepted: Tuple[str, ...]


@dataclass(frozen=True)
class FillBlankKey:
    fillers: Tuple[str, ...]
    blanks: int


@dataclass(frozen=True)
class Question:
    kind: QuestionKind
    text: str
    key: Any
    correct_answer: Any = None
    id: Any = None
    options: Tuple[Any, ...] = ()
    explanation: str = ''
    image_url: Optional[str] = None
    time_limit: Optional[int] = None

    def to_payload(self) -> dict:
        return {
            'id': self.id,
            'question_text': self.text,
            'question_type': self.kind.value,
            'options': list(self.options),
            'image_url': self.image_url,
            'time_limit': self.time_limit,
        }


def decode_stored(value: Any) -> Any:
    """Decode a JSON column value, falling back to the raw value."""
    if isinstance(value, (bytes, bytearray)):
        value = value.decode('utf-8', errors='replace')
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def as_index(value: Any) -> Optional[int]:
    """Read an option index from an int, integral float or digit string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_list(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def canonical_truth(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == 'true'
    return value is True or (not isinstance(value, bool) and value == 1)


def count_blanks(text: str) -> int:
    return (text or '').count(BLANK_MARKER)


def build_key(kind: QuestionKind, text: str, correct: Any):
    if kind is QuestionKind.SINGLE:
        return SingleChoiceKey(as_index(correct))
    if kind is QuestionKind.MULTIPLE:
        indices = [as_index(item) for item in _as_list(correct)]
        if any(index is None for index in indices):
            return MultipleChoiceKey(None)
        return MultipleChoiceKey(frozenset(indices))
    if kind is QuestionKind.TRUE_FALSE:
        return TrueFalseKey(canonical_truth(correct))
    if kind is QuestionKind.SHORT:
        return ShortAnswerKey(tuple(str(item) for item in _as_list(correct)))
    return FillBlankKey(tuple(str(item) for item in _as_list(correct)), count_blanks(text))


def parse_question(record: Mapping[str, Any]) -> Question:
    """Build a ``Question`` from a stored row or a client-supplied dict."""
    if not isinstance(record, Mapping):
        raise QuestionFormatError(f'Question must be an object, got {type(record).__name__}')
    raw_kind = record.get('question_type') or record.get('type')
    try:
        kind = QuestionKind(str(raw_kind).strip().lower())
    except ValueError:
        raise QuestionFormatError(f'Unsupported question type: {raw_kind!r}')

    text = str(record.get('question_text') or record.get('text') or '')
    correct = decode_stored(record.get('correct_answer'))
    options = decode_stored(record.get('options'))
    if not isinstance(options, (list, tuple)):
        options = ()

    time_limit = record.get('time_limit')
    try:
        time_limit = int(time_limit) if time_limit not in (None, '') else None
    except (TypeError, ValueError):
        time_limit = None

    return Question(
        kind=kind,
        text=text,
        key=build_key(kind, text, correct),
        correct_answer=correct,
        id=record.get('id'),
        options=tuple(options),
        explanation=record.get('explanation') or '',
        image_url=record.get('image_url') or None,
        time_limit=time_limit,
    )
