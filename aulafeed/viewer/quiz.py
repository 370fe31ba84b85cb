"""
Quiz renderer - Quiz class interaction, scoring and display.

Provides:
- QuizSession: answer-once questions with per-option feedback
- Grading and submission of a finished quiz
- Quiz question and score rendering
"""

import html
import logging
from dataclasses import dataclass
from typing import Optional

from aulafeed.classroom import ProgressTracker, SubmissionService
from aulafeed.schemas import (
    FeedClass,
    NewSubmission,
    QuizAnswer,
    QuizOption,
    QuizQuestion,
    Submission,
    SubmissionStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class AnswerFeedback:
    """Feedback shown under an answered question."""
    question_id: str
    option_id: str
    correct: Optional[bool]
    message: str


def option_feedback(question: QuizQuestion, option: QuizOption) -> AnswerFeedback:
    """
    Feedback for a chosen option.

    Wrong answers fall back to naming the correct option.
    """
    if option.is_correct is True:
        message = option.correct_feedback or option.feedback or "Correct!"
    elif option.is_correct is False:
        correct = question.correct_option()
        message = (
            option.feedback
            or option.incorrect_feedback
            or (f'Not correct. The correct answer is "{correct.text}"' if correct else "")
            or "Incorrect answer"
        )
    else:
        message = option.feedback or ""
    return AnswerFeedback(
        question_id=question.id,
        option_id=option.id,
        correct=option.is_correct,
        message=message,
    )


class QuizSession:
    """
    State of one student working through a quiz class.

    Each question can be answered once. Progress stays below 100 % until
    the quiz is submitted.
    """

    def __init__(self, item: FeedClass, questions: list[QuizQuestion]):
        self.item = item
        self.questions = sorted(questions, key=lambda q: q.order)
        self.answers: dict[str, str] = {}
        self.feedback: dict[str, AnswerFeedback] = {}
        self.submitted = False
        self.grade: Optional[float] = None

    @property
    def total(self) -> int:
        return len(self.questions)

    def question(self, question_id: str) -> Optional[QuizQuestion]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def answer(self, question_id: str, option_id: str) -> AnswerFeedback:
        """
        Answer a question with one of its options.

        Raises:
            KeyError: Unknown question or option

        Returns:
            Feedback for the answer (the first answer if already answered)
        """
        if question_id in self.feedback:
            return self.feedback[question_id]
        question = self.question(question_id)
        if question is None:
            raise KeyError(f"Unknown question: {question_id}")
        option = question.option(option_id)
        if option is None:
            raise KeyError(f"Unknown option {option_id} for question {question_id}")
        if self.submitted:
            return AnswerFeedback(question_id, option_id, None, "")

        self.answers[question_id] = option_id
        self.feedback[question_id] = option_feedback(question, option)
        return self.feedback[question_id]

    def answer_open(self, question_id: str, text: str) -> None:
        """Store a free-text answer (open questions have no options)."""
        if self.submitted or question_id in self.answers or not text.strip():
            return
        if self.question(question_id) is None:
            raise KeyError(f"Unknown question: {question_id}")
        self.answers[question_id] = text.strip()

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def all_answered(self) -> bool:
        return self.answered_count >= self.total

    @property
    def pct(self) -> float:
        if self.submitted:
            return 100.0
        return min(99.0, self.answered_count / max(self.total, 1) * 100)

    @property
    def autogradable(self) -> bool:
        """Every question has options flagged correct/incorrect."""
        return bool(self.questions) and all(q.has_correctness for q in self.questions)

    @property
    def correct_count(self) -> int:
        count = 0
        for question in self.questions:
            option = question.option(self.answers.get(question.id, ""))
            if option is not None and option.is_correct is True:
                count += 1
        return count

    def compute_grade(self) -> Optional[float]:
        if not self.autogradable:
            return None
        return round(self.correct_count / self.total * 100)

    @property
    def status(self) -> SubmissionStatus:
        return SubmissionStatus.GRADED if self.autogradable else SubmissionStatus.PENDING

    def detailed_answers(self) -> list[QuizAnswer]:
        result = []
        for question in self.questions:
            selected = self.answers.get(question.id, "")
            option = question.option(selected)
            result.append(QuizAnswer(
                question_id=question.id,
                question=question.prompt,
                selected_option_id=selected if option else "",
                selected_option_text=option.text if option else selected,
            ))
        return result

    def submission_content(self) -> str:
        """One line per question: "P1: question -> answer"."""
        return "\n".join(
            f"P{idx}: {answer.question} -> {answer.selected_option_text}"
            for idx, answer in enumerate(self.detailed_answers(), start=1)
        )

    def submit(
        self,
        progress: ProgressTracker,
        submissions: SubmissionService,
        student_id: str,
        student_name: str,
    ) -> Optional[str]:
        """
        Finish the quiz.

        Creates (or updates) the student's submission for this class, then
        writes the answers and grade to the enrollment record. If the
        submission is refused the session stays open.

        Raises:
            SubmissionsClosedError: If the group is no longer active

        Returns:
            The submission id, or None in a feed without a group
        """
        grade = self.compute_grade()
        detailed = self.detailed_answers()

        submission_id = None
        group_id = self.item.group_id
        if group_id and not progress.preview:
            submission_id = self._write_submission(
                submissions, group_id, student_id, student_name, detailed, grade
            )

        self.submitted = True
        self.grade = grade
        progress.save_quiz_result(
            self.item.id,
            dict(self.answers),
            [answer.model_dump() for answer in detailed],
            grade,
            self.status.value,
        )
        return submission_id

    def _write_submission(self, submissions: SubmissionService, group_id: str,
                          student_id: str, student_name: str,
                          detailed: list[QuizAnswer], grade: Optional[float]) -> str:
        existing = submissions.find_submission(group_id, self.item.id, student_id)
        if existing:
            submissions.update_submission(
                group_id, existing.id,
                content=self.submission_content(),
                answers=detailed,
                submitted_at=None,
                status=self.status,
                grade=grade,
            )
            logger.info(f"Updated quiz submission {existing.id} for {self.item.id}")
            return existing.id

        return submissions.create_submission(group_id, NewSubmission(
            class_id=self.item.id,
            class_doc_id=self.item.class_doc_id,
            course_id=self.item.course_id,
            course_title=self.item.course_title,
            class_name=self.item.title,
            class_type=self.item.type,
            student_id=student_id,
            student_name=student_name,
            enrollment_id=self.item.enrollment_id,
            content=self.submission_content(),
            answers=detailed,
            status=self.status,
            grade=grade,
        ))

    @classmethod
    def restore(cls, item: FeedClass, questions: list[QuizQuestion],
                submission: Submission) -> "QuizSession":
        """Rebuild a submitted session from the stored submission."""
        session = cls(item, questions)
        for answer in submission.answers:
            question = session.question(answer.question_id)
            if question is None:
                continue
            option = question.option(answer.selected_option_id)
            if option is not None:
                session.answers[question.id] = option.id
                session.feedback[question.id] = option_feedback(question, option)
            elif answer.selected_option_text:
                session.answers[question.id] = answer.selected_option_text
        session.submitted = True
        session.grade = submission.grade
        return session


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------

def get_quiz_css() -> str:
    """Get CSS styles for quiz display."""
    return """
    <style>
    .quiz-container {
        background: #e3f2fd;
        border-radius: 12px;
        padding: 1.2em 1.5em;
        margin: 1em 0;
        border-left: 4px solid #1976D2;
    }
    .quiz-title {
        font-weight: 600;
        color: #1565C0;
        font-size: 0.95em;
        margin-bottom: 0.4em;
    }
    .quiz-question {
        font-size: 1.05em;
        color: #333;
        line-height: 1.6;
    }
    .quiz-feedback {
        border-radius: 8px;
        padding: 0.7em 1em;
        margin-top: 0.8em;
        font-size: 0.95em;
    }
    .quiz-feedback.correct {
        background: #e8f5e9;
        color: #2e7d32;
    }
    .quiz-feedback.incorrect {
        background: #ffebee;
        color: #c62828;
    }
    .quiz-feedback.neutral {
        background: #f5f5f5;
        color: #555;
    }
    .quiz-score-box {
        background: #e8f5e9;
        border-radius: 8px;
        padding: 1em;
        margin-top: 1.5em;
        text-align: center;
    }
    .quiz-score-value {
        font-size: 2em;
        font-weight: 700;
        color: #388E3C;
    }
    .quiz-score-label {
        color: #666;
        font-size: 0.9em;
    }
    </style>
    """


def render_quiz_question(question: QuizQuestion, index: int,
                         feedback: Optional[AnswerFeedback] = None) -> str:
    """
    Render a quiz question header with its feedback.

    Args:
        question: QuizQuestion object
        index: Zero-based position in the quiz
        feedback: Feedback of the student's answer, if answered

    Returns:
        HTML string for the question
    """
    parts = ['<div class="quiz-container">']
    parts.append(f'<div class="quiz-title">Question {index + 1}</div>')
    parts.append(f'<div class="quiz-question">{html.escape(question.prompt)}</div>')

    if feedback and feedback.message:
        css = {True: "correct", False: "incorrect"}.get(feedback.correct, "neutral")
        parts.append(f'<div class="quiz-feedback {css}">{html.escape(feedback.message)}</div>')

    parts.append('</div>')
    return ''.join(parts)


def render_quiz_score(session: QuizSession) -> str:
    """Render the result box of a submitted quiz."""
    if session.grade is None:
        return """
    <div class="quiz-score-box">
        <div class="quiz-score-label">Submitted. Your teacher will review your answers.</div>
    </div>
    """
    return f"""
    <div class="quiz-score-box">
        <div class="quiz-score-value">{int(session.grade)}%</div>
        <div class="quiz-score-label">{session.correct_count} of {session.total} correct</div>
    </div>
    """
