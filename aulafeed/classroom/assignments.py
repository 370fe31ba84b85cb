"""
AssignmentService - Student deliverables attached to a class.

One submission per student and class; a second attempt returns the first.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from aulafeed import config
from aulafeed.schemas import FeedClass, NewSubmission, Submission, SubmissionStatus

from .errors import ClassroomError
from .submissions import SubmissionService

logger = logging.getLogger(__name__)


def attachment_path(student_id: str, class_id: str, filename: str) -> str:
    """Relative storage path of an uploaded deliverable."""
    safe_name = re.sub(r"[^A-Za-z0-9_.-]", "_", filename) or "file"
    stamp = datetime.now().strftime("%Y%m%d%H%M%S")
    return f"assignments/{student_id}/{class_id}/{stamp}_{safe_name}"


class AssignmentService:
    """Submit and look up assignment deliverables."""

    def __init__(self, submissions: SubmissionService, upload_dir: Optional[Path] = None):
        self.submissions = submissions
        self.upload_dir = Path(upload_dir or config.UPLOAD_DIR)

    def store_attachment(self, student_id: str, class_id: str,
                         filename: str, data: bytes) -> str:
        """
        Write an uploaded file under the upload directory.

        Returns:
            The stored file's path, used as the attachment URL
        """
        target = self.upload_dir / attachment_path(student_id, class_id, filename)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return str(target)

    def status_for(self, item: FeedClass, student_id: str) -> Optional[Submission]:
        if not item.group_id:
            return None
        return self.submissions.find_submission(item.group_id, item.id, student_id)

    def submit(self, item: FeedClass, student_id: str, student_name: str,
               note: str = "", attachment_url: str = "") -> tuple[Submission, bool]:
        """
        Submit the deliverable for a class.

        Args:
            item: Feed class with an assignment
            student_id: Submitting student
            student_name: Name shown to the teacher
            note: Free-text answer
            attachment_url: Uploaded file location

        Raises:
            ClassroomError: Nothing to submit, or the class has no group
            SubmissionsClosedError: If the group is no longer active

        Returns:
            Tuple of (submission, created). created is False when the student
            had already submitted.
        """
        if not item.group_id:
            raise ClassroomError("Assignments can only be submitted from a group feed")
        existing = self.status_for(item, student_id)
        if existing:
            return existing, False

        content = attachment_url.strip() or note.strip()
        if not content:
            raise ClassroomError("Attach a file or write a note before submitting")

        submission_id = self.submissions.create_submission(item.group_id, NewSubmission(
            class_id=item.id,
            class_doc_id=item.class_doc_id,
            course_id=item.course_id,
            course_title=item.course_title,
            class_name=item.title,
            class_type=item.type,
            student_id=student_id,
            student_name=student_name,
            enrollment_id=item.enrollment_id,
            attachment_url=attachment_url.strip(),
            file_url=attachment_url.strip(),
            content=content,
            status=SubmissionStatus.SUBMITTED,
        ))
        logger.info(f"Assignment submitted for {item.id} by {student_id}")
        return self.submissions.get_submission(item.group_id, submission_id), True
