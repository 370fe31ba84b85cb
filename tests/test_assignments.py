"""
Tests for AssignmentService: attachments, submission and duplicates.
"""

import re

import pytest

from aulafeed.classroom import AssignmentService, ClassroomError, FeedLoader
from aulafeed.classroom.assignments import attachment_path
from aulafeed.schemas import SubmissionStatus


@pytest.fixture
def reading(seeded, store):
    feed = FeedLoader(store).load_student_feed("s1")
    return next(item for item in feed.items if item.title == "Reading")


@pytest.fixture
def assignments(submissions, tmp_path):
    return AssignmentService(submissions, upload_dir=tmp_path / "uploads")


class TestAttachments:
    """Test attachment storage."""

    def test_path_format(self):
        path = attachment_path("s1", "bio_text", "my essay (v2).pdf")
        assert re.fullmatch(r"assignments/s1/bio_text/\d{14}_my_essay__v2_\.pdf", path)

    def test_store_attachment(self, assignments, tmp_path):
        stored = assignments.store_attachment("s1", "c1", "notes.txt", b"hello")
        assert stored.startswith(str(tmp_path / "uploads" / "assignments" / "s1" / "c1"))
        with open(stored, "rb") as handle:
            assert handle.read() == b"hello"


class TestSubmit:
    """Test submitting deliverables."""

    def test_submit_note(self, reading, assignments):
        submission, created = assignments.submit(reading, "s1", "Luis", note="  My answer ")
        assert created
        assert submission.content == "My answer"
        assert submission.status == SubmissionStatus.SUBMITTED
        assert submission.class_id == reading.id
        assert submission.class_doc_id == reading.class_doc_id

    def test_attachment_wins_over_note(self, reading, assignments):
        submission, _ = assignments.submit(reading, "s1", "Luis", note="note",
                                           attachment_url="uploads/a.pdf")
        assert submission.content == "uploads/a.pdf"
        assert submission.attachment_url == "uploads/a.pdf"

    def test_second_submit_returns_first(self, reading, assignments, submissions):
        first, _ = assignments.submit(reading, "s1", "Luis", note="one")
        again, created = assignments.submit(reading, "s1", "Luis", note="two")
        assert not created
        assert again.id == first.id
        assert again.content == "one"
        assert len(submissions.get_student_submissions(reading.group_id, "s1")) == 1

    def test_status_for(self, reading, assignments):
        assert assignments.status_for(reading, "s1") is None
        assignments.submit(reading, "s1", "Luis", note="one")
        assert assignments.status_for(reading, "s1").content == "one"

    def test_empty_submission_rejected(self, reading, assignments):
        with pytest.raises(ClassroomError):
            assignments.submit(reading, "s1", "Luis", note="   ")

    def test_preview_feed_rejected(self, seeded, store, assignments):
        feed = FeedLoader(store).load_preview_feed(seeded.bio)
        item = next(item for item in feed.items if item.title == "Reading")
        with pytest.raises(ClassroomError):
            assignments.submit(item, "t1", "Ana", note="x")
