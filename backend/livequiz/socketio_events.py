from flask import current_app, request
from flask_login import current_user
from flask_socketio import close_room, emit, join_room, leave_room

from livequiz.services.quiz.bindings import ConnectionBindings
from livequiz.services.quiz.errors import IgnoredEvent, QuizError
from livequiz.services.quiz.questions import parse_question
from livequiz.services.quiz.session import normalize_code, normalize_name
from livequiz.services.quiz.store import QuizStore


def room_channel(game_code: str) -> str:
    return f"room:{game_code}"


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _instructor_id():
    if current_user.is_authenticated and getattr(current_user, 'is_instructor', False):
        return current_user.id
    return None


class RoomBroadcaster:
    """Socket.IO boundary of the live quiz engine.

    Resolves each inbound event to a room (and participant) through the
    connection bindings, runs the matching ``RoomRegistry`` transition, then
    delivers the outcome: emissions go to the room channel or a single
    connection, audit records go to the audit sink.
    """

    def __init__(self, rooms, audit, store=None, bindings=None):
        self.rooms = rooms
        self.audit = audit
        self.store = store or QuizStore()
        self.bindings = bindings or ConnectionBindings()

    # ---- delivery ----

    def deliver(self, outcome) -> None:
        channel = room_channel(outcome.room_code)
        for emission in outcome.emissions:
            emit(emission.event, emission.payload, to=emission.to or channel)
        self.audit.write_all(outcome.records)

    def _run(self, operation, error_event='error'):
        """Run one transition and deliver its outcome.

        Ignored events (duplicates, stale clients) are dropped quietly; any
        other engine error goes back to the requesting connection only.
        """
        try:
            outcome = operation()
        except IgnoredEvent as exc:
            current_app.logger.debug(f'[ignored] sid={_get_sid()} {exc.code}: {exc}')
            return None
        except QuizError as exc:
            current_app.logger.info(f'[rejected] sid={_get_sid()} {exc.code}: {exc}')
            emit(error_event, {'message': str(exc), 'code': exc.code})
            return None
        self.deliver(outcome)
        return outcome

    def _attach(self, sid: str, game_code: str, name=None) -> None:
        if name is None:
            previous = self.bindings.bind_host(sid, game_code)
        else:
            previous = self.bindings.bind_participant(sid, game_code, name)
        if previous and previous.room_code != game_code:
            leave_room(room_channel(previous.room_code))
            self._release(sid, previous)
        join_room(room_channel(game_code))

    def _release(self, sid: str, binding) -> None:
        """Mark the participant behind an old binding as disconnected."""
        if binding is None or binding.is_host:
            return
        try:
            outcome = self.rooms.disconnect(binding.room_code, sid)
        except QuizError as exc:
            # the old room may have ended or re-bound the name already
            current_app.logger.debug(f'[release] sid={sid} room={binding.room_code} {exc.code}')
            return
        self.deliver(outcome)

    def _refuse_host_connection(self, sid: str, error_event: str) -> bool:
        binding = self.bindings.get(sid)
        if binding is None or not binding.is_host:
            return False
        emit(error_event, {
            'message': f'This connection is hosting session {binding.room_code}',
            'code': 'host_connection',
        })
        return True

    def _require_host(self, data) -> str:
        game_code = normalize_code((data or {}).get('game_code'))
        if not game_code:
            emit('error', {'message': 'game_code is required', 'code': 'bad_request'})
            return ''
        if not self.bindings.is_host_of(_get_sid(), game_code):
            emit('error', {'message': f'You are not the host of session {game_code}', 'code': 'not_room_host'})
            return ''
        return game_code

    # ---- connection lifecycle ----

    def on_connect(self, auth=None):
        emit('connected', {'sid': _get_sid()})

    def on_disconnect(self, reason=None):
        sid = _get_sid()
        self._release(sid, self.bindings.clear(sid))

    # ---- instructor events ----

    def on_create_room(self, data):
        instructor_id = _instructor_id()
        if instructor_id is None:
            emit('error', {'message': 'Instructor login required', 'code': 'unauthorized'})
            return
        quiz_id = (data or {}).get('quiz_id')
        if self.store.get_quiz_by_id(quiz_id) is None:
            emit('error', {'message': 'Quiz not found', 'code': 'quiz_not_found'})
            return
        outcome = self.rooms.create(quiz_id, instructor_id)
        self._attach(_get_sid(), outcome.room_code)
        self.deliver(outcome)
        emit('room_created', {'game_code': outcome.room_code, 'quiz_id': quiz_id})

    def on_host_room(self, data):
        instructor_id = _instructor_id()
        if instructor_id is None:
            emit('error', {'message': 'Instructor login required', 'code': 'unauthorized'})
            return
        sid = _get_sid()
        game_code = normalize_code((data or {}).get('game_code'))
        outcome = self._run(lambda: self.rooms.host(game_code, instructor_id, sid))
        if outcome is not None:
            self._attach(sid, outcome.room_code)
            current_app.logger.info(f'[host] sid={sid} hosting room={outcome.room_code}')

    def on_start(self, data):
        game_code = self._require_host(data)
        if not game_code:
            return
        raw_questions = (data or {}).get('questions')

        def start():
            if raw_questions:
                questions = [parse_question(record) for record in raw_questions]
            else:
                questions = self.store.get_questions_for_quiz(self.rooms.get(game_code).quiz_id)
            return self.rooms.start(game_code, questions)

        self._run(start)

    def on_advance(self, data):
        game_code = self._require_host(data)
        if game_code:
            self._run(lambda: self.rooms.advance(game_code))

    def on_request_results(self, data):
        game_code = self._require_host(data)
        if game_code:
            self._run(lambda: self.rooms.request_results(game_code))

    def on_end(self, data):
        game_code = self._require_host(data)
        if not game_code:
            return
        if self._run(lambda: self.rooms.end(game_code)) is not None:
            self.bindings.clear_room(game_code)
            close_room(room_channel(game_code))

    # ---- participant events ----

    def on_join(self, data):
        data = data or {}
        sid = _get_sid()
        game_code = normalize_code(data.get('game_code'))
        name = normalize_name(data.get('name'))
        current_app.logger.info(f'[join-request] sid={sid} room={game_code} name={name!r}')
        if self._refuse_host_connection(sid, 'join_error'):
            return

        def join():
            outcome = self.rooms.join(game_code, name, sid)
            # subscribe before the roster broadcast so the joiner sees it too
            self._attach(sid, game_code, name)
            return outcome

        self._run(join, error_event='join_error')

    def on_rejoin(self, data):
        data = data or {}
        sid = _get_sid()
        if self._refuse_host_connection(sid, 'error'):
            return
        game_code = normalize_code(data.get('game_code'))
        name = normalize_name(data.get('name'))

        def rejoin():
            outcome = self.rooms.rejoin(game_code, name, sid)
            self._attach(sid, game_code, name)
            return outcome

        self._run(rejoin)

    def on_request_current_question(self, data):
        data = data or {}
        sid = _get_sid()
        binding = self.bindings.get(sid)
        game_code = normalize_code(data.get('game_code') or (binding.room_code if binding else None))
        name = data.get('name') or (binding.name if binding else None)
        self._run(lambda: self.rooms.request_current_question(game_code, sid, name))

    def on_submit_answer(self, data):
        data = data or {}
        sid = _get_sid()
        binding = self.bindings.get(sid)
        game_code = normalize_code(data.get('game_code') or (binding.room_code if binding else None))
        self._run(lambda: self.rooms.submit_answer(game_code, data.get('answer'), name=data.get('name'), sid=sid))

    def on_client_debug(self, data=None):
        if data is None:
            data = {}
        elif not isinstance(data, dict):
            data = {'message': data}
        current_app.logger.info(
            f"[client-debug] sid={_get_sid()} url={str(data.get('url', ''))[:120]} "
            f"message={str(data.get('message', ''))[:500]}"
        )


EVENTS = (
    ('connect', 'on_connect'),
    ('disconnect', 'on_disconnect'),
    ('create_room', 'on_create_room'),
    ('host_room', 'on_host_room'),
    ('join', 'on_join'),
    ('rejoin', 'on_rejoin'),
    ('request_current_question', 'on_request_current_question'),
    ('start', 'on_start'),
    ('advance', 'on_advance'),
    ('submit_answer', 'on_submit_answer'),
    ('request_results', 'on_request_results'),
    ('end', 'on_end'),
    ('client_debug', 'on_client_debug'),
)


def register_socketio_handlers(broadcaster: RoomBroadcaster, namespace: str = '/ws', testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on ``namespace``. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    from livequiz import socketio

    namespaces = [namespace]
    if testing and namespace != '/':
        namespaces.append('/')
    for ns in namespaces:
        for event, method in EVENTS:
            socketio.on_event(event, getattr(broadcaster, method), namespace=ns)
