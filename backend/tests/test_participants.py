import pytest

from livequiz.services.quiz.grading import RIGHT, WRONG
from livequiz.services.quiz.participants import AnswerSlot, ParticipantRegistry


def test_leaderboard_is_stable_for_ties():
    registry = ParticipantRegistry()
    for name, points in (('Ana', 300), ('Ben', 300), ('Cy', 500)):
        registry.add(name).award(points)
    assert [p.name for p in registry.leaderboard()] == ['Cy', 'Ana', 'Ben']


def test_names_are_case_sensitive_identities():
    registry = ParticipantRegistry()
    registry.add('sam')
    registry.add('Sam')
    assert len(registry) == 2
    with pytest.raises(ValueError):
        registry.add('Sam')


def test_scores_never_decrease():
    registry = ParticipantRegistry()
    ana = registry.add('Ana')
    with pytest.raises(ValueError):
        ana.award(-10)
    assert ana.score == 0


def test_bind_moves_connection_between_participants():
    registry = ParticipantRegistry()
    registry.add('Ana', sid='s1')
    registry.add('Ben')
    registry.bind('Ben', 's1')
    assert registry.get('Ana').sid is None
    assert registry.find_by_sid('s1').name == 'Ben'


def test_falsy_answers_still_count_as_answered():
    registry = ParticipantRegistry()
    ana = registry.add('Ana')
    ben = registry.add('Ben')
    ana.slot = AnswerSlot(answer=0, grade=RIGHT, points=900)
    assert ana.has_answered
    assert not registry.all_answered()
    ben.slot = AnswerSlot(answer='', grade=WRONG, points=0)
    assert registry.all_answered()
    assert registry.correct_count() == 1

    registry.clear_answers()
    assert registry.answered_count() == 0


def test_empty_registry_is_never_all_answered():
    assert not ParticipantRegistry().all_answered()


def test_roster_reports_connection_and_answer_flags():
    registry = ParticipantRegistry()
    registry.add('Ana', sid='s1')
    registry.add('Ben')
    roster = {entry['name']: entry for entry in registry.roster()}
    assert roster['Ana'] == {'name': 'Ana', 'score': 0, 'has_answered': False, 'connected': True}
    assert roster['Ben']['connected'] is False
