from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .grading import Grade


@dataclass
class AnswerSlot:
    """What a participant submitted for the open question, and what it earned."""
    answer: Any
    grade: Grade
    points: int
    result: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Participant:
    name: str
    score: int = 0
    sid: Optional[str] = None
    slot: Optional[AnswerSlot] = None

    @property
    def has_answered(self) -> bool:
        return self.slot is not None

    @property
    def connected(self) -> bool:
        return self.sid is not None

    def award(self, points: int) -> None:
        if points < 0:
            raise ValueError('scores never decrease')
        self.score += points

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'score': self.score,
            'has_answered': self.has_answered,
            'connected': self.connected,
        }


class ParticipantRegistry:
    """Participants of one room, in join order, keyed by display name."""

    def __init__(self) -> None:
        self._by_name: Dict[str, Participant] = {}

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[Participant]:
        return iter(list(self._by_name.values()))

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def get(self, name: Optional[str]) -> Optional[Participant]:
        if not name:
            return None
        return self._by_name.get(name)

    def find_by_sid(self, sid: Optional[str]) -> Optional[Participant]:
        if not sid:
            return None
        for participant in self._by_name.values():
            if participant.sid == sid:
                return participant
        return None

    def add(self, name: str, sid: Optional[str] = None) -> Participant:
        if name in self._by_name:
            raise ValueError(f'participant {name!r} already registered')
        participant = Participant(name=name, sid=sid)
        self._by_name[name] = participant
        return participant

    def bind(self, name: str, sid: Optional[str]) -> Participant:
        participant = self._by_name[name]
        # A connection speaks for one participant at a time.
        previous = self.find_by_sid(sid)
        if previous is not None and previous is not participant:
            previous.sid = None
        participant.sid = sid
        return participant

    def clear_answers(self) -> None:
        for participant in self._by_name.values():
            participant.slot = None

    def answered_count(self) -> int:
        return sum(1 for p in self._by_name.values() if p.has_answered)

    def all_answered(self) -> bool:
        return bool(self._by_name) and self.answered_count() == len(self._by_name)

    def correct_count(self) -> int:
        return sum(1 for p in self._by_name.values() if p.slot is not None and p.slot.grade.is_correct)

    def leaderboard(self) -> List[Participant]:
        # sorted() is stable: ties keep join order
        return sorted(self._by_name.values(), key=lambda p: -p.score)

    def roster(self) -> List[dict]:
        return [p.to_dict() for p in self.leaderboard()]
