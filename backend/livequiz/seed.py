"""Demo content for ``flask db-reset`` and the test suite."""
import json

from livequiz import db
from livequiz.models import Module, Question, Quiz, User

DEMO_INSTRUCTOR = ('instructor', 'password')

DEMO_MODULE = {
    'id': 'M13',
    'name': 'Aircraft Aerodynamics, Structures and Systems',
    'category': 'B2',
    'topics': ['Flight controls', 'Autoflight', 'Instruments', 'Hydraulics'],
}

DEMO_QUESTIONS = [
    {
        'module_id': 'M13',
        'topic': 'Flight controls',
        'question_text': 'Which control surface primarily controls roll?',
        'question_type': 'single',
        'options': ['Elevator', 'Aileron', 'Rudder', 'Flap'],
        'correct_answer': 1,
        'explanation': 'Ailerons deflect differentially to roll the aircraft.',
    },
    {
        'module_id': 'M13',
        'topic': 'Flight controls',
        'question_text': 'Which of these are secondary flight controls?',
        'question_type': 'multiple',
        'options': ['Flaps', 'Ailerons', 'Slats', 'Spoilers'],
        'correct_answer': [0, 2, 3],
        'explanation': 'Flaps, slats and spoilers modify lift and drag.',
    },
    {
        'module_id': 'M13',
        'topic': 'Autoflight',
        'question_text': 'The yaw damper counters Dutch roll.',
        'question_type': 'truefalse',
        'options': ['True', 'False'],
        'correct_answer': True,
        'explanation': 'A yaw damper applies rudder to damp Dutch roll oscillations.',
    },
    {
        'module_id': 'M13',
        'topic': 'Instruments',
        'question_text': 'What does the abbreviation ILS stand for?',
        'question_type': 'short',
        'options': [],
        'correct_answer': ['Instrument Landing System', 'instrument landing system'],
        'explanation': 'ILS is the Instrument Landing System.',
    },
    {
        'module_id': 'M13',
        'topic': 'Hydraulics',
        'question_text': 'Hydraulic [blank] is measured in [blank] per square inch.',
        'question_type': 'fillblank',
        'options': [],
        'correct_answer': ['pressure', 'pounds'],
        'explanation': 'Hydraulic pressure is given in psi, pounds per square inch.',
    },
]


def seed_demo_data():
    """Create the demo instructor, module and questions, and one quiz using all of them."""
    username, password = DEMO_INSTRUCTOR
    instructor = User.query.filter_by(username=username).first()
    if instructor is None:
        instructor = User(username=username, role='instructor')
        instructor.set_password(password)
        db.session.add(instructor)
        db.session.commit()

    if db.session.get(Module, DEMO_MODULE['id']) is None:
        db.session.add(Module(
            id=DEMO_MODULE['id'],
            name=DEMO_MODULE['name'],
            category=DEMO_MODULE['category'],
            topics=json.dumps(DEMO_MODULE['topics']),
            is_custom=False,
        ))

    ids = []
    for entry in DEMO_QUESTIONS:
        question = Question(
            module_id=entry['module_id'],
            topic=entry['topic'],
            question_text=entry['question_text'],
            question_type=entry['question_type'],
            options=json.dumps(entry['options']),
            correct_answer=json.dumps(entry['correct_answer']),
            explanation=entry['explanation'],
            difficulty='medium',
            created_by=instructor.id,
        )
        db.session.add(question)
        db.session.flush()
        ids.append(question.id)

    quiz = Quiz(
        title='Module 13 warm-up',
        description='One question of every kind.',
        mode='practice',
        question_refs=json.dumps(ids),
        created_by=instructor.id,
    )
    db.session.add(quiz)
    db.session.commit()
    return quiz
