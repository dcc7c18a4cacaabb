from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user
from livequiz import db
from livequiz.models import Question, Quiz
from livequiz.services.quiz.questions import QuestionKind
from livequiz.api import instructor_required
import json

quizzes = Blueprint('quizzes', __name__)

QUIZ_MODES = ('practice', 'exam', 'mixed')


@quizzes.route('/questions', methods=['GET'])
def list_questions():
    query = Question.query
    module_id = request.args.get('module_id')
    if module_id:
        query = query.filter_by(module_id=module_id)
    return jsonify([q.to_dict() for q in query.order_by(Question.id).all()])


@quizzes.route('/questions/module/<string:module_id>', methods=['GET'])
def list_module_questions(module_id):
    rows = Question.query.filter_by(module_id=module_id).order_by(Question.id).all()
    return jsonify([q.to_dict() for q in rows])


def _question_fields(data, partial=False):
    """Validated column values from a question payload, or an error message.

    With ``partial`` only the keys present in ``data`` are checked and returned.
    """
    fields = {}
    if not partial or 'question_text' in data:
        question_text = (data.get('question_text') or '').strip()
        if not question_text:
            return None, 'question_text is required'
        fields['question_text'] = question_text
    if not partial or 'question_type' in data:
        try:
            fields['question_type'] = QuestionKind(data.get('question_type')).value
        except ValueError:
            return None, f"Unsupported question type: {data.get('question_type')!r}"
    if 'correct_answer' in data:
        fields['correct_answer'] = json.dumps(data.get('correct_answer'))
    elif not partial:
        return None, 'correct_answer is required'
    if not partial or 'options' in data:
        fields['options'] = json.dumps(data.get('options') or [])
    for key in ('module_id', 'topic', 'difficulty', 'time_limit'):
        if not partial or key in data:
            fields[key] = data.get(key)
    if not partial or 'explanation' in data:
        fields['explanation'] = data.get('explanation') or ''
    if not partial or 'image_url' in data:
        fields['image_url'] = data.get('image_url') or None
    return fields, None


@quizzes.route('/questions', methods=['POST'])
@instructor_required
def create_question():
    data = request.get_json(silent=True) or {}
    fields, error = _question_fields(data)
    if error:
        return jsonify({'error': error}), 400

    question = Question(created_by=current_user.id, **fields)
    db.session.add(question)
    db.session.commit()
    current_app.logger.info(f"[question] created id={question.id} type={fields['question_type']} by={current_user.id}")
    return jsonify({'success': True, 'id': question.id}), 201


@quizzes.route('/questions/<int:question_id>', methods=['PUT'])
@instructor_required
def update_question(question_id):
    question = db.session.get(Question, question_id)
    if question is None:
        return jsonify({'error': 'Question not found'}), 404
    data = request.get_json(silent=True) or {}
    fields, error = _question_fields(data, partial=True)
    if error:
        return jsonify({'error': error}), 400
    for key, value in fields.items():
        setattr(question, key, value)
    db.session.commit()
    current_app.logger.info(f'[question] updated id={question_id} fields={sorted(fields)}')
    return jsonify({'success': True, 'question': question.to_dict()})


@quizzes.route('/questions/<int:question_id>', methods=['DELETE'])
@instructor_required
def delete_question(question_id):
    question = db.session.get(Question, question_id)
    if question is None:
        return jsonify({'error': 'Question not found'}), 404
    # quizzes keep the stale id; QuizStore skips refs that no longer resolve
    db.session.delete(question)
    db.session.commit()
    current_app.logger.info(f'[question] deleted id={question_id}')
    return jsonify({'success': True})


@quizzes.route('/quizzes', methods=['GET'])
@instructor_required
def list_quizzes():
    rows = Quiz.query.filter_by(created_by=current_user.id).order_by(Quiz.created_at.desc()).all()
    return jsonify([quiz.to_dict() for quiz in rows])


@quizzes.route('/quizzes', methods=['POST'])
@instructor_required
def create_quiz():
    data = request.get_json(silent=True) or {}
    title = (data.get('title') or '').strip()
    if not title:
        return jsonify({'error': 'title is required'}), 400
    mode = data.get('mode') or 'practice'
    if mode not in QUIZ_MODES:
        return jsonify({'error': f'mode must be one of {", ".join(QUIZ_MODES)}'}), 400
    refs = data.get('question_refs') or []
    if not isinstance(refs, list) or not all(isinstance(ref, int) for ref in refs):
        return jsonify({'error': 'question_refs must be a list of question ids'}), 400

    quiz = Quiz(
        title=title,
        description=data.get('description'),
        mode=mode,
        question_refs=json.dumps(refs),
        time_limit=data.get('time_limit'),
        created_by=current_user.id,
    )
    db.session.add(quiz)
    db.session.commit()
    return jsonify({'success': True, 'id': quiz.id}), 201
