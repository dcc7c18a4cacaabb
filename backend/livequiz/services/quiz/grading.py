"""Answer grading for the five question kinds.

``grade`` never raises: a submission that does not fit the question kind is
worth zero credit, and a canonical answer that could not be decoded simply
never matches.
"""
from dataclasses import dataclass
from functools import singledispatch
from typing import Any

from .errors import MalformedAnswer
from .questions import (
    FillBlankKey,
    MultipleChoiceKey,
    Question,
    ShortAnswerKey,
    SingleChoiceKey,
    TrueFalseKey,
    as_index,
)


@dataclass(frozen=True)
class Grade:
    is_correct: bool
    multiplier: float

    @property
    def partial(self) -> bool:
        return 0.0 < self.multiplier < 1.0


WRONG = Grade(False, 0.0)
RIGHT = Grade(True, 1.0)


def normalize_text(value: Any) -> str:
    return str(value).strip().casefold()


def _text_submission(answer: Any) -> str:
    if isinstance(answer, bool) or answer is None:
        raise MalformedAnswer(f'expected text, got {answer!r}')
    if isinstance(answer, (str, int, float)):
        return normalize_text(answer)
    raise MalformedAnswer(f'expected text, got {type(answer).__name__}')


def _submitted_index(answer: Any) -> int:
    index = as_index(answer)
    if index is None:
        raise MalformedAnswer(f'expected an option index, got {answer!r}')
    return index


def _submitted_truth(answer: Any) -> bool:
    # The first displayed option is "True", so index 0 means true.
    if isinstance(answer, bool):
        return answer
    if isinstance(answer, str) and answer.strip().lower() in ('true', 'false'):
        return answer.strip().lower() == 'true'
    index = as_index(answer)
    if index is None:
        raise MalformedAnswer(f'expected true/false, got {answer!r}')
    return index == 0


def _binary(matched: bool) -> Grade:
    return RIGHT if matched else WRONG


@singledispatch
def grade_key(key, answer) -> Grade:
    raise TypeError(f'no grader for {type(key).__name__}')


@grade_key.register
def _(key: SingleChoiceKey, answer) -> Grade:
    if key.index is None:
        return WRONG
    return _binary(_submitted_index(answer) == key.index)


@grade_key.register
def _(key: MultipleChoiceKey, answer) -> Grade:
    if key.indices is None:
        return WRONG
    if not isinstance(answer, (list, tuple, set, frozenset)):
        raise MalformedAnswer(f'expected a list of indices, got {answer!r}')
    submitted = frozenset(_submitted_index(item) for item in answer)
    return _binary(submitted == key.indices)


@grade_key.register
def _(key: TrueFalseKey, answer) -> Grade:
    return _binary(_submitted_truth(answer) == key.value)


@grade_key.register
def _(key: ShortAnswerKey, answer) -> Grade:
    submitted = _text_submission(answer)
    return _binary(any(normalize_text(accepted) == submitted for accepted in key.accepted))


@grade_key.register
def _(key: FillBlankKey, answer) -> Grade:
    if key.blanks <= 1:
        if isinstance(answer, (list, tuple)):
            if not answer:
                raise MalformedAnswer('empty fill-in submission')
            answer = answer[0]
        submitted = _text_submission(answer)
        return _binary(any(normalize_text(accepted) == submitted for accepted in key.fillers))

    if not isinstance(answer, (list, tuple)) or len(answer) != len(key.fillers):
        raise MalformedAnswer(
            f'expected {len(key.fillers)} blanks, got {answer!r}'
        )
    matches = sum(
        1 for given, expected in zip(answer, key.fillers)
        if normalize_text(given) == normalize_text(expected)
    )
    multiplier = min(1.0, matches / key.blanks)
    return Grade(multiplier >= 1.0, multiplier)


def grade(question: Question, answer: Any) -> Grade:
    """Grade ``answer`` against ``question``; malformed answers get no credit."""
    try:
        return grade_key(question.key, answer)
    except MalformedAnswer:
        return WRONG
