"""In-memory live quiz rooms.

``RoomRegistry`` owns every active room and is the only thing that mutates
room or participant state. Each room has its own lock; the registry lock only
guards the code -> room map. Every operation returns an ``Outcome`` for the
boundary to emit and persist.
"""
import logging
import random
import string
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

from .errors import (
    DuplicateSubmission,
    InvalidName,
    InvalidTransition,
    NoActiveQuestion,
    NotRoomOwner,
    ParticipantNotFound,
    RoomNotFound,
)
from .grading import grade
from .outcomes import Outcome, ResponseRecorded, SessionCreated, SessionStatusChanged
from .participants import AnswerSlot, Participant, ParticipantRegistry
from .questions import Question
from .scoring import DEFAULT_TIME_LIMIT_MS, score

log = logging.getLogger(__name__)


class RoomStatus(str, Enum):
    WAITING = 'waiting'
    ACTIVE = 'active'
    COMPLETED = 'completed'


def normalize_code(code: Any) -> str:
    return str(code if code is not None else '').strip().upper()


def normalize_name(name: Any) -> str:
    return str(name if name is not None else '').strip()


def generate_room_code(length: int = 6) -> str:
    """Short numeric code that is easy to type on a phone."""
    return random.choice('123456789') + ''.join(random.choices(string.digits, k=length - 1))


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Room:
    code: str
    quiz_id: Any
    instructor_id: Any
    status: RoomStatus = RoomStatus.WAITING
    questions: List[Question] = field(default_factory=list)
    question_index: int = -1
    question_started_ms: Optional[float] = None
    participants: ParticipantRegistry = field(default_factory=ParticipantRegistry)
    closed: bool = False
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.status is RoomStatus.ACTIVE and 0 <= self.question_index < len(self.questions):
            return self.questions[self.question_index]
        return None

    @property
    def finished(self) -> bool:
        return self.status is RoomStatus.ACTIVE and self.question_index >= len(self.questions)

    def to_dict(self) -> dict:
        return {
            'game_code': self.code,
            'quiz_id': self.quiz_id,
            'instructor_id': self.instructor_id,
            'status': self.status.value,
            'finished': self.finished,
            'current_question_index': self.question_index,
            'total_questions': self.total_questions,
            'participants': self.participants.roster(),
        }


def leaderboard_payload(room: Room) -> List[dict]:
    return [
        {'name': p.name, 'score': p.score, 'has_answered': p.has_answered}
        for p in room.participants.leaderboard()
    ]


def final_leaderboard(room: Room) -> List[dict]:
    return [{'name': p.name, 'score': p.score} for p in room.participants.leaderboard()]


class RoomRegistry:
    """All live rooms of this server process, keyed by game code."""

    def __init__(
        self,
        code_length: int = 6,
        default_time_limit_ms: int = DEFAULT_TIME_LIMIT_MS,
        leaderboard_every: int = 5,
        clock: Optional[Callable[[], float]] = None,
        code_factory: Optional[Callable[[int], str]] = None,
    ) -> None:
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()
        self._code_length = code_length
        self._default_time_limit_ms = default_time_limit_ms
        self._leaderboard_every = leaderboard_every
        self._clock = clock or monotonic_ms
        self._code_factory = code_factory or generate_room_code

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code: Any) -> bool:
        return normalize_code(code) in self._rooms

    def get(self, code: Any) -> Room:
        normalized = normalize_code(code)
        room = self._rooms.get(normalized)
        if room is None:
            raise RoomNotFound(normalized)
        return room

    def rooms_for_instructor(self, instructor_id: Any) -> List[Room]:
        with self._lock:
            rooms = list(self._rooms.values())
        return [room for room in rooms if room.instructor_id == instructor_id]

    @contextmanager
    def _locked(self, code: Any) -> Iterator[Room]:
        room = self.get(code)
        with room.lock:
            # end() may have won the race between lookup and lock
            if room.closed:
                raise RoomNotFound(room.code)
            yield room

    # ---- payload builders (call with the room lock held) ----

    def _time_limit_ms(self, question: Question) -> int:
        if question.time_limit:
            return int(question.time_limit) * 1000
        return self._default_time_limit_ms

    def _question_payload(self, room: Room, elapsed_ms: float = 0) -> dict:
        question = room.current_question
        payload = question.to_payload()
        payload.update({
            'question_number': room.question_index + 1,
            'total_questions': room.total_questions,
            'time_limit': question.time_limit or self._default_time_limit_ms // 1000,
            'elapsed_ms': int(elapsed_ms),
        })
        return payload

    def _question_results(self, room: Room) -> dict:
        question = room.current_question
        number = room.question_index + 1
        return {
            'question_number': number,
            'leaderboard': leaderboard_payload(room),
            'correct_answer': question.correct_answer,
            'explanation': question.explanation,
            'stats': {
                'correct': room.participants.correct_count(),
                'total': len(room.participants),
            },
            'show_leaderboard': self._leaderboard_every > 0 and number % self._leaderboard_every == 0,
        }

    def _roster(self, room: Room) -> dict:
        return {
            'game_code': room.code,
            'total_participants': len(room.participants),
            'participants': room.participants.roster(),
        }

    def _elapsed_ms(self, room: Room) -> float:
        if room.question_started_ms is None:
            return 0.0
        return max(0.0, self._clock() - room.question_started_ms)

    # ---- transitions ----

    def create(self, quiz_id: Any, instructor_id: Any) -> Outcome:
        with self._lock:
            code = self._code_factory(self._code_length)
            while code in self._rooms:
                log.debug(f'[create] code collision {code}, regenerating')
                code = self._code_factory(self._code_length)
            self._rooms[code] = Room(code=code, quiz_id=quiz_id, instructor_id=instructor_id)
        log.info(f'[create] room={code} quiz={quiz_id} instructor={instructor_id}')
        return Outcome(code).record(SessionCreated(code, quiz_id, instructor_id))

    def host(self, code: Any, instructor_id: Any, sid: Optional[str]) -> Outcome:
        with self._locked(code) as room:
            if room.instructor_id != instructor_id:
                raise NotRoomOwner(room.code)
            log.info(f'[host] room={room.code} instructor={instructor_id}')
            return Outcome(room.code).unicast(sid, 'roster_update', self._roster(room))

    def join(self, code: Any, name: Any, sid: Optional[str]) -> Outcome:
        name = normalize_name(name)
        if not name:
            raise InvalidName('A display name is required to join.')
        with self._locked(code) as room:
            participant = room.participants.get(name)
            if participant is not None:
                log.info(f'[join] room={room.code} name={name} re-binding existing participant')
                room.participants.bind(name, sid)
            else:
                room.participants.add(name)
                participant = room.participants.bind(name, sid)
                log.info(f'[join] room={room.code} name={name} total={len(room.participants)}')

            roster = self._roster(room)
            outcome = Outcome(room.code)
            outcome.unicast(sid, 'joined', dict(roster, name=participant.name, score=participant.score))
            outcome.broadcast('roster_update', roster)
            outcome.broadcast('leaderboard_update', leaderboard_payload(room))
            return outcome

    def rejoin(self, code: Any, name: Any, sid: Optional[str]) -> Outcome:
        name = normalize_name(name)
        with self._locked(code) as room:
            if name not in room.participants:
                log.warning(
                    f'[rejoin] room={room.code} name={name} not found; known={[p.name for p in room.participants]}'
                )
                raise ParticipantNotFound(room.code, name)
            room.participants.bind(name, sid)
            log.info(f'[rejoin] room={room.code} name={name}')
            return Outcome(room.code).broadcast('participant_status', {
                'name': name,
                'status': 'connected',
                'total_participants': len(room.participants),
            })

    def disconnect(self, code: Any, sid: str) -> Outcome:
        with self._locked(code) as room:
            participant = room.participants.find_by_sid(sid)
            if participant is None:
                # Already re-bound to a newer connection.
                raise ParticipantNotFound(room.code)
            participant.sid = None
            log.info(f'[disconnect] room={room.code} name={participant.name}')
            return Outcome(room.code).broadcast('participant_status', {
                'name': participant.name,
                'status': 'disconnected',
                'total_participants': len(room.participants),
            })

    def start(self, code: Any, questions: List[Question]) -> Outcome:
        with self._locked(code) as room:
            if room.status is not RoomStatus.WAITING:
                raise InvalidTransition(f'Session {room.code} has already started')
            if not questions:
                raise InvalidTransition('Cannot start a quiz with no questions')
            room.questions = list(questions)
            room.status = RoomStatus.ACTIVE
            room.question_index = -1
            room.question_started_ms = None
            log.info(f'[start] room={room.code} questions={room.total_questions}')
            return (
                Outcome(room.code)
                .broadcast('quiz_started', {'total_questions': room.total_questions})
                .record(SessionStatusChanged(room.code, RoomStatus.ACTIVE.value, _utcnow()))
            )

    def advance(self, code: Any) -> Outcome:
        with self._locked(code) as room:
            if room.status is not RoomStatus.ACTIVE:
                raise InvalidTransition(f'Session {room.code} has not started')
            outcome = Outcome(room.code)
            if not room.finished:
                room.question_index += 1
            if room.finished:
                room.question_started_ms = None
                log.info(f'[finish] room={room.code} after {room.total_questions} questions')
                return outcome.broadcast('quiz_ended', {
                    'leaderboard': final_leaderboard(room),
                    'room_closed': False,
                })

            room.participants.clear_answers()
            room.question_started_ms = self._clock()
            log.info(f'[advance] room={room.code} question={room.question_index + 1}/{room.total_questions}')
            return outcome.broadcast('new_question', self._question_payload(room))

    def request_current_question(self, code: Any, sid: Optional[str], name: Any = None) -> Outcome:
        with self._locked(code) as room:
            if room.current_question is None:
                raise NoActiveQuestion(room.code)
            outcome = Outcome(room.code)
            outcome.unicast(sid, 'new_question', self._question_payload(room, self._elapsed_ms(room)))

            participant = room.participants.find_by_sid(sid) or room.participants.get(normalize_name(name))
            if participant is not None and participant.slot is not None:
                outcome.unicast(sid, 'answer_result', dict(participant.slot.result, redelivered=True))
            return outcome

    def _resolve(self, room: Room, name: Any, sid: Optional[str]) -> Participant:
        participant = room.participants.get(normalize_name(name)) or room.participants.find_by_sid(sid)
        if participant is None:
            raise ParticipantNotFound(room.code, normalize_name(name) or None)
        return participant

    def submit_answer(self, code: Any, answer: Any, name: Any = None, sid: Optional[str] = None) -> Outcome:
        with self._locked(code) as room:
            question = room.current_question
            if question is None:
                raise NoActiveQuestion(room.code)
            participant = self._resolve(room, name, sid)
            if participant.has_answered:
                raise DuplicateSubmission(room.code, participant.name)

            elapsed = self._elapsed_ms(room)
            result_grade = grade(question, answer)
            points = score(result_grade.multiplier, elapsed, self._time_limit_ms(question))
            participant.award(points)
            result = {
                'is_correct': result_grade.is_correct,
                'points': points,
                'total_score': participant.score,
                'correct_answer': question.correct_answer,
                'submitted_answer': answer,
                'explanation': question.explanation,
                'partial': result_grade.partial,
            }
            participant.slot = AnswerSlot(answer=answer, grade=result_grade, points=points, result=result)
            log.info(
                f'[answer] room={room.code} name={participant.name} q={room.question_index + 1} '
                f'correct={result_grade.is_correct} multiplier={result_grade.multiplier:.3f} '
                f'elapsed_ms={int(elapsed)} points={points}'
            )

            outcome = Outcome(room.code)
            outcome.unicast(sid or participant.sid, 'answer_result', result)
            outcome.broadcast('leaderboard_update', leaderboard_payload(room))
            if room.participants.all_answered():
                log.info(f'[all-answered] room={room.code} q={room.question_index + 1}')
                outcome.broadcast('question_results', self._question_results(room))
            outcome.record(ResponseRecorded(
                room_code=room.code,
                participant_name=participant.name,
                question_id=question.id,
                answer=answer,
                is_correct=result_grade.is_correct,
                response_time_ms=int(elapsed),
                points=points,
            ))
            return outcome

    def request_results(self, code: Any) -> Outcome:
        with self._locked(code) as room:
            if room.current_question is None:
                raise NoActiveQuestion(room.code)
            log.info(f'[results] room={room.code} q={room.question_index + 1} forced by host')
            return Outcome(room.code).broadcast('question_results', self._question_results(room))

    def end(self, code: Any) -> Outcome:
        with self._locked(code) as room:
            room.closed = True
            room.status = RoomStatus.COMPLETED
            with self._lock:
                self._rooms.pop(room.code, None)
            log.info(f'[end] room={room.code} participants={len(room.participants)}')
            return (
                Outcome(room.code)
                .broadcast('quiz_ended', {'leaderboard': final_leaderboard(room), 'room_closed': True})
                .record(SessionStatusChanged(room.code, RoomStatus.COMPLETED.value, _utcnow()))
            )
