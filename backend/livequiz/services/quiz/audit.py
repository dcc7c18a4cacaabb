"""Best-effort audit trail of live sessions.

The in-memory room is authoritative for the running game. Writes here never
gate a transition: a failure is logged, rolled back and forgotten.
"""
import json
import logging
import threading
from typing import Dict

from livequiz import db
from livequiz.models import QuizSession, StudentResponse
from .outcomes import ResponseRecorded, SessionCreated, SessionStatusChanged

log = logging.getLogger(__name__)


class SqlAuditSink:
    def __init__(self) -> None:
        # room code -> quiz_session.id for rooms that are still live
        self._session_ids: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._handlers = {
            SessionCreated: self._session_created,
            SessionStatusChanged: self._status_changed,
            ResponseRecorded: self._response_recorded,
        }

    def session_id(self, room_code: str):
        return self._session_ids.get(room_code)

    def write(self, record) -> None:
        handler = self._handlers.get(type(record))
        if handler is None:
            log.warning(f'[audit] no handler for {type(record).__name__}')
            return
        try:
            handler(record)
        except Exception:
            db.session.rollback()
            log.warning(f'[audit] failed to persist {type(record).__name__} room={record.room_code}', exc_info=True)

    def write_all(self, records) -> None:
        for record in records:
            self.write(record)

    def _session_created(self, record: SessionCreated) -> None:
        row = QuizSession(
            quiz_id=record.quiz_id,
            game_code=record.room_code,
            instructor_id=record.instructor_id,
            status='waiting',
        )
        db.session.add(row)
        db.session.commit()
        with self._lock:
            self._session_ids[record.room_code] = row.id

    def _status_changed(self, record: SessionStatusChanged) -> None:
        session_id = self._session_ids.get(record.room_code)
        row = db.session.get(QuizSession, session_id) if session_id else None
        if row is None:
            log.warning(f'[audit] no session row for room={record.room_code}; status {record.status} not saved')
            return
        row.status = record.status
        if record.status == 'completed':
            row.ended_at = record.at
            with self._lock:
                self._session_ids.pop(record.room_code, None)
        else:
            row.started_at = record.at
        db.session.add(row)
        db.session.commit()

    def _response_recorded(self, record: ResponseRecorded) -> None:
        session_id = self._session_ids.get(record.room_code)
        if not session_id:
            log.warning(f'[audit] no session row for room={record.room_code}; response not saved')
            return
        question_id = record.question_id if isinstance(record.question_id, int) else None
        db.session.add(StudentResponse(
            session_id=session_id,
            student_name=record.participant_name,
            question_id=question_id,
            answer=json.dumps(record.answer, default=str),
            is_correct=record.is_correct,
            response_time=record.response_time_ms,
            points=record.points,
        ))
        db.session.commit()
