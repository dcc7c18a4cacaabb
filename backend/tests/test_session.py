import pytest

from livequiz.services.quiz.errors import (
    DuplicateSubmission,
    InvalidName,
    InvalidTransition,
    NoActiveQuestion,
    NotRoomOwner,
    ParticipantNotFound,
    RoomNotFound,
)
from livequiz.services.quiz.outcomes import ResponseRecorded, SessionCreated, SessionStatusChanged
from livequiz.services.quiz.questions import parse_question
from livequiz.services.quiz.session import RoomRegistry, RoomStatus


def new_room(rooms, instructor_id=7):
    return rooms.create(quiz_id=1, instructor_id=instructor_id).room_code


def started_room(rooms, questions, names=('Alice', 'Bob')):
    code = new_room(rooms)
    for name in names:
        rooms.join(code, name, f'sid-{name.lower()}')
    rooms.start(code, questions)
    return code


def test_create_allocates_waiting_room(rooms):
    outcome = rooms.create(quiz_id=3, instructor_id=7)
    room = rooms.get(outcome.room_code)
    assert room.status is RoomStatus.WAITING
    assert room.question_index == -1
    assert len(room.participants) == 0
    assert len(outcome.room_code) == 6 and outcome.room_code.isdigit()
    assert outcome.records == [SessionCreated(outcome.room_code, 3, 7)]


def test_create_regenerates_colliding_codes(clock):
    codes = iter(['111111', '111111', '111111', '222222'])
    rooms = RoomRegistry(clock=clock, code_factory=lambda length: next(codes))
    assert rooms.create(1, 7).room_code == '111111'
    assert rooms.create(1, 7).room_code == '222222'
    assert len(rooms) == 2


def test_unknown_room_raises(rooms):
    with pytest.raises(RoomNotFound):
        rooms.join('999999', 'Alice', 'sid-a')
    with pytest.raises(RoomNotFound):
        rooms.advance('999999')


def test_join_adds_participant_and_broadcasts_roster(rooms):
    code = new_room(rooms)
    outcome = rooms.join(f'  {code} ', '  Alice ', 'sid-a')
    joined = outcome.find('joined')
    assert joined.to == 'sid-a'
    assert joined.payload['name'] == 'Alice'
    assert joined.payload['participants'][0]['has_answered'] is False
    assert outcome.find('roster_update').is_broadcast
    assert outcome.find('leaderboard_update').is_broadcast
    assert rooms.get(code).participants.get('Alice').sid == 'sid-a'


def test_join_with_existing_name_rebinds_without_reset(rooms, clock, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    rooms.submit_answer(code, 1, name='Alice', sid='sid-alice')
    alice = rooms.get(code).participants.get('Alice')
    score_before = alice.score

    rooms.join(code, 'Alice', 'sid-alice-2')

    assert len(rooms.get(code).participants) == 2
    assert alice.sid == 'sid-alice-2'
    assert alice.score == score_before
    assert alice.has_answered


def test_join_requires_a_name(rooms):
    code = new_room(rooms)
    with pytest.raises(InvalidName):
        rooms.join(code, '   ', 'sid-a')


def test_host_checks_instructor(rooms):
    code = new_room(rooms, instructor_id=7)
    rooms.join(code, 'Alice', 'sid-a')
    outcome = rooms.host(code, 7, 'sid-host')
    roster = outcome.find('roster_update')
    assert roster.to == 'sid-host'
    assert roster.payload['total_participants'] == 1
    with pytest.raises(NotRoomOwner):
        rooms.host(code, 8, 'sid-other')


def test_rejoin_unknown_name_changes_nothing(rooms):
    code = new_room(rooms)
    rooms.join(code, 'Alice', 'sid-a')
    with pytest.raises(ParticipantNotFound):
        rooms.rejoin(code, 'Mallory', 'sid-m')
    room = rooms.get(code)
    assert [p.name for p in room.participants] == ['Alice']
    assert room.participants.find_by_sid('sid-m') is None


def test_start_is_only_allowed_once(rooms, two_questions):
    code = new_room(rooms)
    outcome = rooms.start(code, two_questions)
    assert outcome.find('quiz_started').payload == {'total_questions': 2}
    assert rooms.get(code).status is RoomStatus.ACTIVE
    status = outcome.records[0]
    assert isinstance(status, SessionStatusChanged) and status.status == 'active'
    with pytest.raises(InvalidTransition):
        rooms.start(code, two_questions)


def test_start_needs_questions(rooms):
    code = new_room(rooms)
    with pytest.raises(InvalidTransition):
        rooms.start(code, [])


def test_advance_before_start_is_rejected(rooms):
    code = new_room(rooms)
    with pytest.raises(InvalidTransition):
        rooms.advance(code)


def test_submit_without_open_question_is_ignored(rooms, two_questions):
    code = started_room(rooms, two_questions)
    with pytest.raises(NoActiveQuestion):
        rooms.submit_answer(code, 1, name='Alice')


def test_advance_broadcasts_question_and_clears_answers(rooms, clock, two_questions):
    code = started_room(rooms, two_questions)
    first = rooms.advance(code).find('new_question')
    assert first.is_broadcast
    assert first.payload['question_number'] == 1
    assert first.payload['total_questions'] == 2
    assert first.payload['options'] == ['Elevator', 'Aileron', 'Rudder']
    assert first.payload['time_limit'] == 75

    rooms.submit_answer(code, 1, name='Alice')
    clock.tick(1000)
    second = rooms.advance(code).find('new_question')
    assert second.payload['question_number'] == 2
    assert second.payload['time_limit'] == 30
    room = rooms.get(code)
    assert room.participants.answered_count() == 0
    assert room.question_started_ms == clock.now


def test_full_game_flow(rooms, clock, two_questions):
    code = new_room(rooms)
    rooms.join(code, 'Alice', 'sid-a')
    rooms.join(code, 'Bob', 'sid-b')
    rooms.start(code, two_questions)
    assert rooms.advance(code).find('new_question').payload['question_number'] == 1

    clock.tick(0)
    fast = rooms.submit_answer(code, 1, name='Alice', sid='sid-a')
    result = fast.find('answer_result')
    assert result.to == 'sid-a'
    assert result.payload['is_correct'] is True
    assert result.payload['points'] == 1000
    assert result.payload['total_score'] == 1000
    assert result.payload['correct_answer'] == 1
    assert 'question_results' not in fast.events()
    assert isinstance(fast.records[0], ResponseRecorded)

    clock.tick(15000)
    wrong = rooms.submit_answer(code, 0, name='Bob', sid='sid-b')
    assert wrong.find('answer_result').payload['points'] == 0
    results = wrong.find('question_results')
    assert results.is_broadcast
    assert results.payload['stats'] == {'correct': 1, 'total': 2}
    assert results.payload['leaderboard'][0]['name'] == 'Alice'
    assert results.payload['show_leaderboard'] is False

    rooms.advance(code)
    ended = rooms.advance(code).find('quiz_ended')
    assert ended.payload == {
        'leaderboard': [{'name': 'Alice', 'score': 1000}, {'name': 'Bob', 'score': 0}],
        'room_closed': False,
    }
    room = rooms.get(code)
    assert room.finished
    assert room.current_question is None

    # still addressable; advancing again repeats the final board
    again = rooms.advance(code)
    assert again.events() == ['quiz_ended']
    assert rooms.get(code).question_index == 2


def test_first_submission_wins(rooms, clock, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    rooms.submit_answer(code, 0, name='Alice')
    with pytest.raises(DuplicateSubmission):
        rooms.submit_answer(code, 1, name='Alice')
    alice = rooms.get(code).participants.get('Alice')
    assert alice.score == 0
    assert alice.slot.answer == 0


def test_submission_resolves_by_connection_when_name_missing(rooms, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    outcome = rooms.submit_answer(code, 1, sid='sid-bob')
    assert outcome.find('answer_result').to == 'sid-bob'
    assert rooms.get(code).participants.get('Bob').has_answered
    with pytest.raises(ParticipantNotFound):
        rooms.submit_answer(code, 1, name='Nobody', sid='sid-nobody')


def test_late_answer_still_scores_half(rooms, clock, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    clock.tick(500000)
    assert rooms.submit_answer(code, 1, name='Alice').find('answer_result').payload['points'] == 500


def test_question_time_limit_drives_speed_decay(rooms, clock, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    rooms.advance(code)
    clock.tick(15000)
    result = rooms.submit_answer(code, 'instrument landing system', name='Alice').find('answer_result')
    # 30 s limit, answered at 15 s
    assert result.payload['points'] == 750


def test_partial_credit_is_reported(rooms, clock):
    question = parse_question({
        'question_type': 'fillblank',
        'question_text': '[blank] [blank] [blank]',
        'correct_answer': '["a", "b", "c"]',
    })
    code = new_room(rooms)
    rooms.join(code, 'Alice', 'sid-a')
    rooms.start(code, [question])
    rooms.advance(code)
    outcome = rooms.submit_answer(code, ['a', 'b', 'x'], name='Alice', sid='sid-a')
    payload = outcome.find('answer_result').payload
    assert payload['partial'] is True
    assert payload['is_correct'] is False
    assert payload['points'] == 667
    assert outcome.find('question_results').payload['stats'] == {'correct': 0, 'total': 1}


def test_disconnect_keeps_participant_and_blocks_auto_results(rooms, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    status = rooms.disconnect(code, 'sid-bob').find('participant_status')
    assert status.payload == {'name': 'Bob', 'status': 'disconnected', 'total_participants': 2}

    outcome = rooms.submit_answer(code, 1, name='Alice')
    assert 'question_results' not in outcome.events()

    forced = rooms.request_results(code).find('question_results')
    assert forced.payload['stats'] == {'correct': 1, 'total': 2}


def test_disconnect_of_stale_connection_is_ignored(rooms):
    code = new_room(rooms)
    rooms.join(code, 'Alice', 'sid-old')
    rooms.rejoin(code, 'Alice', 'sid-new')
    with pytest.raises(ParticipantNotFound):
        rooms.disconnect(code, 'sid-old')
    assert rooms.get(code).participants.get('Alice').sid == 'sid-new'


def test_reconnect_mid_question_resyncs_without_stale_result(rooms, clock, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    clock.tick(4000)
    rooms.disconnect(code, 'sid-alice')

    rejoined = rooms.rejoin(code, 'Alice', 'sid-alice-2')
    assert rejoined.find('participant_status').payload['status'] == 'connected'

    outcome = rooms.request_current_question(code, 'sid-alice-2')
    assert outcome.events() == ['new_question']
    question = outcome.find('new_question')
    assert question.to == 'sid-alice-2'
    assert question.payload['question_number'] == 1
    assert question.payload['elapsed_ms'] == 4000


def test_resync_redelivers_stored_result_without_rescoring(rooms, clock, two_questions):
    code = started_room(rooms, two_questions)
    rooms.advance(code)
    clock.tick(7500)
    first = rooms.submit_answer(code, 1, name='Alice', sid='sid-alice').find('answer_result').payload

    clock.tick(60000)
    outcome = rooms.request_current_question(code, 'sid-alice-2', name='Alice')
    replay = outcome.find('answer_result')
    assert replay.to == 'sid-alice-2'
    assert replay.payload['points'] == first['points'] == 950
    assert replay.payload['redelivered'] is True
    assert rooms.get(code).participants.get('Alice').score == 950


def test_request_current_question_needs_open_question(rooms, two_questions):
    code = new_room(rooms)
    with pytest.raises(NoActiveQuestion):
        rooms.request_current_question(code, 'sid-a')
    rooms.start(code, two_questions)
    with pytest.raises(NoActiveQuestion):
        rooms.request_current_question(code, 'sid-a')


def test_show_leaderboard_every_nth_question(clock, two_questions):
    rooms = RoomRegistry(clock=clock, leaderboard_every=2)
    code = started_room(rooms, two_questions, names=('Alice',))
    rooms.advance(code)
    assert rooms.request_results(code).find('question_results').payload['show_leaderboard'] is False
    rooms.advance(code)
    assert rooms.request_results(code).find('question_results').payload['show_leaderboard'] is True


def test_end_removes_room(rooms, two_questions):
    code = started_room(rooms, two_questions)
    outcome = rooms.end(code)
    ended = outcome.find('quiz_ended')
    assert ended.payload['room_closed'] is True
    assert [entry['name'] for entry in ended.payload['leaderboard']] == ['Alice', 'Bob']
    assert outcome.records[0].status == 'completed'
    assert code not in rooms
    for operation in (
        lambda: rooms.join(code, 'Carol', 'sid-c'),
        lambda: rooms.advance(code),
        lambda: rooms.submit_answer(code, 1, name='Alice'),
        lambda: rooms.end(code),
    ):
        with pytest.raises(RoomNotFound):
            operation()


def test_rooms_are_independent(rooms, two_questions):
    first = started_room(rooms, two_questions)
    second = started_room(rooms, two_questions)
    rooms.advance(first)
    rooms.end(second)
    assert rooms.get(first).current_question is two_questions[0]
    assert [room.code for room in rooms.rooms_for_instructor(7)] == [first]
