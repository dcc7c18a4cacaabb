from typing import List, Optional

from livequiz import db
from livequiz.models import Question as QuestionRow, Quiz
from .questions import Question, parse_question


class QuizStore:
    """Read-only view of stored quizzes for the live engine."""

    def get_quiz_by_id(self, quiz_id) -> Optional[dict]:
        quiz = db.session.get(Quiz, quiz_id) if quiz_id is not None else None
        if quiz is None:
            return None
        return {
            'id': quiz.id,
            'title': quiz.title,
            'question_refs': quiz.question_ids,
            'time_limit': quiz.time_limit,
        }

    def get_questions_for_quiz(self, quiz_id) -> List[Question]:
        quiz = self.get_quiz_by_id(quiz_id)
        if quiz is None or not quiz['question_refs']:
            return []
        rows = QuestionRow.query.filter(QuestionRow.id.in_(quiz['question_refs'])).all()
        by_id = {row.id: row for row in rows}
        questions = []
        # keep the quiz's order; refs to deleted questions are skipped
        for ref in quiz['question_refs']:
            row = by_id.get(ref)
            if row is None:
                continue
            record = row.to_record()
            if record['time_limit'] is None:
                record['time_limit'] = quiz['time_limit']
            questions.append(parse_question(record))
        return questions
