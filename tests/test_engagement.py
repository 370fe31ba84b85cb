"""
Tests for user profiles, class comments and likes.
"""

from datetime import datetime

from aulafeed.classroom.engagement import DEFAULT_STUDENT_NAME, EngagementService
from aulafeed.schemas import UserProfile


class TestUserDirectory:
    """Test profiles and the password-change flag."""

    def test_display_name(self, users):
        users.upsert_user(UserProfile(id="u1", name="Luis", display_name="Lu"))
        users.upsert_user(UserProfile(id="u2", display_name="Bea"))
        assert users.get_display_name("u1") == "Luis"
        assert users.get_display_name("u2") == "Bea"
        assert users.get_display_name("missing") == ""

    def test_upsert_refreshes_cached_name(self, users):
        users.upsert_user(UserProfile(id="u1", name="Luis"))
        assert users.get_display_name("u1") == "Luis"
        users.upsert_user(UserProfile(id="u1", name="Luis Pérez"))
        assert users.get_display_name("u1") == "Luis Pérez"

    def test_missing_flag_means_change_required(self, users):
        assert users.must_change_password("missing")
        users.upsert_user(UserProfile(id="u1", name="Luis"))
        assert users.must_change_password("u1")

    def test_clear_flag(self, users):
        users.upsert_user(UserProfile(id="u1", name="Luis", must_change_password=True))
        users.clear_must_change_password("u1")
        assert not users.must_change_password("u1")

    def test_upsert_keeps_flag_when_unset(self, users):
        users.upsert_user(UserProfile(id="u1", name="Luis", must_change_password=False))
        users.upsert_user(UserProfile(id="u1", name="Luis P."))
        assert not users.must_change_password("u1")


class TestPeopleListings:
    """Test teacher and student listings."""

    def test_teachers_of_every_role(self, users):
        users.upsert_user(UserProfile(id="t1", name="Ana", role="teacher",
                                      created_at=datetime(2026, 1, 1)))
        users.upsert_user(UserProfile(id="t2", display_name="Jefa", role="superAdminTeacher",
                                      phone="555", created_at=datetime(2026, 2, 1)))
        users.upsert_user(UserProfile(id="t3", role="adminTeacher",
                                      created_at=datetime(2026, 3, 1)))
        users.upsert_user(UserProfile(id="s1", name="Luis", role="student"))

        teachers = users.get_teacher_users()
        assert [t.id for t in teachers] == ["t3", "t2", "t1"]
        assert [t.name for t in teachers] == ["Profesor", "Jefa", "Ana"]
        assert teachers[1].phone == "555"
        assert len(users.get_teacher_users(limit=1)) == 1

    def test_students(self, users):
        users.upsert_user(UserProfile(id="s1", name="Luis", role="student",
                                      created_at=datetime(2026, 1, 1)))
        users.upsert_user(UserProfile(id="s2", role="student", email="x@example.org",
                                      created_at=datetime(2026, 2, 1)))
        users.upsert_user(UserProfile(id="t1", name="Ana", role="teacher"))

        students = users.get_student_users()
        assert [(s.id, s.name) for s in students] == [("s2", "Alumno"), ("s1", "Luis")]
        assert students[0].email == "x@example.org"
        assert students[0].status == "active"

    def test_upsert_keeps_created_at(self, users):
        users.upsert_user(UserProfile(id="s1", name="Luis", created_at=datetime(2026, 1, 1)))
        users.upsert_user(UserProfile(id="s1", name="Luis P."))
        assert users.get_user("s1").created_at == datetime(2026, 1, 1)

    def test_deactivate_teacher(self, users):
        users.upsert_user(UserProfile(id="t1", name="Ana", role="teacher"))
        users.deactivate_teacher("t1")
        assert users.get_user("t1").status == "deleted"
        assert users.get_display_name("t1") == "Ana"


class TestComments:
    """Test comments and author name resolution."""

    def test_add_and_read(self, engagement):
        engagement.add_comment("k1", "  Great class  ", "u1", "Luis")
        [comment] = engagement.get_comments("k1")
        assert comment.text == "Great class"
        assert comment.author == "Luis"
        assert comment.role == "student"

    def test_placeholder_resolved_from_profile(self, users, engagement):
        users.upsert_user(UserProfile(id="u1", name="Luis"))
        engagement.add_comment("k1", "Hi", "u1", "Alumno")
        assert engagement.get_comments("k1")[0].author == "Luis"

    def test_placeholder_falls_back_to_viewer(self, engagement):
        engagement.add_comment("k1", "Hi", "u9", "")
        assert engagement.get_comments("k1", "u9", "Me")[0].author == "Me"
        assert engagement.get_comments("k1", "u1", "Other")[0].author == DEFAULT_STUDENT_NAME

    def test_professor_placeholder(self, engagement):
        engagement.add_comment("k1", "Welcome", "t9", "profesor")
        assert engagement.get_comments("k1")[0].author == "Profesor"

    def test_comment_tree(self, store, engagement):
        rows = [
            ("root", None, "2026-01-03T00:00:00"),
            ("late-reply", "root", "2026-01-05T00:00:00"),
            ("early-reply", "root", "2026-01-04T00:00:00"),
            ("orphan", "gone", "2026-01-01T00:00:00"),
        ]
        for comment_id, parent_id, stamp in rows:
            store.execute(
                """INSERT INTO comments (id, class_id, text, author_id, author_name,
                                         parent_id, role, created_at)
                   VALUES (?, 'k1', 'x', 'u1', 'Luis', ?, 'student', ?)""",
                (comment_id, parent_id, stamp)
            )
        tree = EngagementService.comment_tree(engagement.get_comments("k1"))
        assert [root.id for root, _ in tree] == ["root", "orphan"]
        assert [reply.id for reply in tree[0][1]] == ["early-reply", "late-reply"]


class TestLikes:
    """Test like toggling and the likes counter."""

    def test_toggle(self, seeded, courses, engagement):
        assert engagement.toggle_like(seeded.video, "s1") == (True, 1)
        assert engagement.toggle_like(seeded.video, "s2") == (True, 2)
        assert engagement.has_liked(seeded.video, "s1")
        assert engagement.toggle_like(seeded.video, "s1") == (False, 1)
        assert courses.get_class(seeded.video).likes_count == 1

    def test_liked_ids(self, seeded, engagement):
        engagement.toggle_like(seeded.video, "s1")
        engagement.toggle_like(seeded.text, "s1")
        assert engagement.get_liked_class_ids("s1") == {seeded.video, seeded.text}
        assert engagement.get_liked_class_ids("s2") == set()
