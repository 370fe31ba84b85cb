"""Errors raised by the classroom services."""


class ClassroomError(Exception):
    """Base class for classroom errors with a user-facing message."""


class NotFoundError(ClassroomError):
    pass


class GroupNotFoundError(NotFoundError):
    def __init__(self, group_id: str):
        super().__init__(f"Group not found: {group_id}")
        self.group_id = group_id


class SubmissionsClosedError(ClassroomError):
    """The group is no longer active, so it accepts no submissions."""

    def __init__(self, group_id: str):
        super().__init__("The submission period for this group has ended")
        self.group_id = group_id


class ForumGradedError(ClassroomError):
    """A graded forum post can no longer be edited or deleted."""

    def __init__(self, class_id: str, author_id: str):
        super().__init__("This forum post has already been graded")
        self.class_id = class_id
        self.author_id = author_id


class FeedError(ClassroomError):
    """The student feed cannot be built; the message is shown to the student."""
