"""
Tests for quiz sessions: feedback, grading, submission and restore.
"""

import pytest

from aulafeed.classroom import (
    FeedLoader,
    LocalProgressCache,
    ProgressTracker,
    SubmissionsClosedError,
)
from aulafeed.schemas import (
    FeedClass,
    GroupStatus,
    QuizOption,
    QuizQuestion,
    SubmissionStatus,
)
from aulafeed.viewer import (
    QuizSession,
    option_feedback,
    render_quiz_question,
    render_quiz_score,
)


def _item():
    return FeedClass(id="c_quiz", class_doc_id="quiz", title="Quiz", type="quiz",
                     course_id="c", lesson_id="l")


def _questions():
    return [
        QuizQuestion(id="q2", prompt="Capital of France?", order=1, options=[
            QuizOption(id="a", text="Paris", is_correct=True),
            QuizOption(id="b", text="Lyon", is_correct=False, feedback="Close, but no."),
        ]),
        QuizQuestion(id="q1", prompt="2 + 2?", order=0, options=[
            QuizOption(id="a", text="3", is_correct=False),
            QuizOption(id="b", text="4", is_correct=True, correct_feedback="Well done"),
        ]),
    ]


class TestOptionFeedback:
    """Test per-option feedback messages."""

    def test_correct_uses_correct_feedback(self):
        question = _questions()[1]
        assert option_feedback(question, question.option("b")).message == "Well done"

    def test_correct_default(self):
        question = _questions()[0]
        feedback = option_feedback(question, question.option("a"))
        assert feedback.correct is True
        assert feedback.message == "Correct!"

    def test_incorrect_names_correct_answer(self):
        question = _questions()[1]
        feedback = option_feedback(question, question.option("a"))
        assert feedback.correct is False
        assert feedback.message == 'Not correct. The correct answer is "4"'

    def test_incorrect_uses_option_feedback(self):
        question = _questions()[0]
        assert option_feedback(question, question.option("b")).message == "Close, but no."

    def test_incorrect_without_correct_option(self):
        question = QuizQuestion(id="q", options=[QuizOption(id="a", text="x", is_correct=False)])
        assert option_feedback(question, question.options[0]).message == "Incorrect answer"

    def test_ungraded_option(self):
        question = QuizQuestion(id="q", options=[QuizOption(id="a", text="x")])
        feedback = option_feedback(question, question.options[0])
        assert feedback.correct is None
        assert feedback.message == ""


class TestQuizSession:
    """Test answering and scoring."""

    def test_questions_sorted(self):
        session = QuizSession(_item(), _questions())
        assert [q.id for q in session.questions] == ["q1", "q2"]

    def test_answer_once(self):
        session = QuizSession(_item(), _questions())
        first = session.answer("q1", "a")
        second = session.answer("q1", "b")
        assert second is first
        assert session.answers == {"q1": "a"}

    def test_unknown_ids(self):
        session = QuizSession(_item(), _questions())
        with pytest.raises(KeyError):
            session.answer("zz", "a")
        with pytest.raises(KeyError):
            session.answer("q1", "zz")

    def test_pct_stays_below_full_until_submitted(self):
        session = QuizSession(_item(), _questions())
        session.answer("q1", "b")
        assert session.pct == 50.0
        session.answer("q2", "a")
        assert session.all_answered
        assert session.pct == 99.0

    def test_grade(self):
        session = QuizSession(_item(), _questions())
        session.answer("q1", "a")
        session.answer("q2", "a")
        assert session.autogradable
        assert session.correct_count == 1
        assert session.compute_grade() == 50
        assert session.status == SubmissionStatus.GRADED

    def test_not_autogradable(self):
        questions = [QuizQuestion(id="open", type="open", prompt="Explain.")]
        session = QuizSession(_item(), questions)
        session.answer_open("open", "  Because.  ")
        assert session.answers == {"open": "Because."}
        assert session.compute_grade() is None
        assert session.status == SubmissionStatus.PENDING

    def test_submission_content(self):
        session = QuizSession(_item(), _questions())
        session.answer("q1", "b")
        session.answer("q2", "a")
        assert session.submission_content() == "P1: 2 + 2? -> 4\nP2: Capital of France? -> Paris"


class TestSubmit:
    """Test submitting a quiz from the student feed."""

    @pytest.fixture
    def quiz_item(self, seeded, store):
        feed = FeedLoader(store).load_student_feed("s1")
        return feed, next(item for item in feed.items if item.type == "quiz")

    @pytest.fixture
    def tracker(self, quiz_item, store, cache_dir):
        feed, _ = quiz_item
        return ProgressTracker(store, "s1", feed.enrollment.id,
                               cache=LocalProgressCache("s1", cache_dir))

    def test_submit_creates_submission(self, quiz_item, tracker, courses, submissions):
        _, item = quiz_item
        questions = courses.get_quiz_questions(item.class_doc_id)
        session = QuizSession(item, questions)
        session.answer(questions[0].id, "b")

        submission_id = session.submit(tracker, submissions, "s1", "Luis")

        assert session.submitted and session.pct == 100.0
        submission = submissions.get_submission(item.group_id, submission_id)
        assert submission.class_id == item.id
        assert submission.grade == 100
        assert submission.status == SubmissionStatus.GRADED
        assert submission.answers[0].selected_option_text == "4"
        assert tracker.get_class_progress(item.id).quiz_completed

    def test_resubmit_updates(self, quiz_item, tracker, courses, submissions):
        _, item = quiz_item
        questions = courses.get_quiz_questions(item.class_doc_id)
        first = QuizSession(item, questions)
        first.answer(questions[0].id, "a")
        first_id = first.submit(tracker, submissions, "s1", "Luis")

        second = QuizSession(item, questions)
        second.answer(questions[0].id, "b")
        second_id = second.submit(tracker, submissions, "s1", "Luis")

        assert second_id == first_id
        assert len(submissions.get_student_submissions(item.group_id, "s1")) == 1
        assert submissions.get_submission(item.group_id, first_id).grade == 100

    def test_closed_group_keeps_session_open(self, quiz_item, tracker, courses, submissions,
                                             groups):
        _, item = quiz_item
        groups.set_group_status(item.group_id, GroupStatus.FINISHED)
        questions = courses.get_quiz_questions(item.class_doc_id)
        session = QuizSession(item, questions)
        session.answer(questions[0].id, "b")

        with pytest.raises(SubmissionsClosedError):
            session.submit(tracker, submissions, "s1", "Luis")

        assert not session.submitted
        assert session.grade is None
        assert session.pct == 99.0
        record = tracker.get_class_progress(item.id)
        assert record is None or not record.quiz_completed
        assert submissions.get_student_submissions(item.group_id, "s1") == []

    def test_restore(self, quiz_item, tracker, courses, submissions):
        _, item = quiz_item
        questions = courses.get_quiz_questions(item.class_doc_id)
        session = QuizSession(item, questions)
        session.answer(questions[0].id, "a")
        submission_id = session.submit(tracker, submissions, "s1", "Luis")

        stored = submissions.get_submission(item.group_id, submission_id)
        restored = QuizSession.restore(item, questions, stored)
        assert restored.submitted
        assert restored.grade == 0
        assert restored.answers == {questions[0].id: "a"}
        assert restored.feedback[questions[0].id].correct is False


class TestRendering:
    """Test quiz HTML."""

    def test_question_escaped(self):
        question = QuizQuestion(id="q", prompt="<b>1 < 2</b>?")
        html = render_quiz_question(question, 0)
        assert "&lt;b&gt;1 &lt; 2&lt;/b&gt;?" in html
        assert "Question 1" in html

    def test_feedback_class(self):
        session = QuizSession(_item(), _questions())
        feedback = session.answer("q1", "a")
        html = render_quiz_question(session.questions[0], 0, feedback)
        assert 'quiz-feedback incorrect' in html

    def test_score(self):
        session = QuizSession(_item(), _questions())
        session.answer("q1", "b")
        session.answer("q2", "a")
        session.grade = session.compute_grade()
        assert "100%" in render_quiz_score(session)
        session.grade = None
        assert "Your teacher will review" in render_quiz_score(session)
