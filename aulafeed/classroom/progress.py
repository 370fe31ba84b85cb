"""
ProgressTracker - Per-class progress for the student feed.

Progress lives in three places that are merged on load:
- A local JSON cache in ~/.aulafeed (survives a lost connection)
- seen_classes: per-user "already seen" markers
- class_progress: per-enrollment records

All three are keyed by feed class id ("{course_id}_{class_id}"). Progress
never decreases and completed/seen flags are never cleared, so every write
is an idempotent max-merge.
"""

import logging
import math
import re
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from aulafeed import config
from aulafeed.schemas import ClassProgress, ClassType, FeedClass, ProgressSnapshot

from .forums import ForumService
from .store import ClassroomStore, from_json, now, parse_timestamp, to_json

logger = logging.getLogger(__name__)


DEFAULT_CACHE_DIR = config.CACHE_DIR


def required_pct(class_type: str) -> float:
    """Percentage needed to complete a class of the given type."""
    if class_type == ClassType.IMAGE.value:
        return config.IMAGE_COMPLETION_THRESHOLD
    return config.COMPLETION_THRESHOLD


# -----------------------------------------------------------------------------
# Local cache
# -----------------------------------------------------------------------------

class LocalProgressCache:
    """
    Progress maps of one user in a JSON file.

    Reading never fails (a missing or corrupt file is an empty snapshot)
    and write errors are logged and ignored.
    """

    def __init__(self, user_id: str, cache_dir: Optional[Path] = None):
        safe_id = re.sub(r"[^A-Za-z0-9_.-]", "_", user_id)
        self.path = Path(cache_dir or DEFAULT_CACHE_DIR) / f"class_progress_{safe_id}.json"

    def load(self) -> ProgressSnapshot:
        if not self.path.exists():
            return ProgressSnapshot()
        try:
            return ProgressSnapshot.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable progress cache {self.path}: {exc}")
            return ProgressSnapshot()

    def save(self, snapshot: ProgressSnapshot):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(snapshot.model_dump_json(), encoding="utf-8")
        except OSError as exc:
            logger.warning(f"Could not write progress cache {self.path}: {exc}")

    def merge(self, snapshot: ProgressSnapshot) -> ProgressSnapshot:
        """Merge entries into the cached snapshot and write it back."""
        merged = self.load().merged_with(snapshot)
        self.save(merged)
        return merged


# -----------------------------------------------------------------------------
# Tracker
# -----------------------------------------------------------------------------

@dataclass
class ProgressUpdate:
    """Outcome of one progress report from a player."""
    class_id: str
    pct: float
    persisted: bool = False
    just_completed: bool = False
    prompt_assignment: bool = False


class ProgressTracker:
    """
    In-memory progress maps plus their persistence.

    In preview mode every class counts as complete and nothing is written.
    """

    def __init__(
        self,
        store: ClassroomStore,
        user_id: str,
        enrollment_id: Optional[str] = None,
        cache: Optional[LocalProgressCache] = None,
        preview: bool = False,
    ):
        """
        Initialize progress tracker.

        Args:
            store: Classroom store holding seen_classes and class_progress
            user_id: Student id
            enrollment_id: StudentEnrollment id (None: no per-enrollment records)
            cache: Local cache (default: ~/.aulafeed/class_progress_<user>.json)
            preview: Teacher preview mode
        """
        self.store = store
        self.user_id = user_id
        self.enrollment_id = enrollment_id
        self.cache = cache or LocalProgressCache(user_id)
        self.preview = preview

        self.progress: dict[str, float] = {}
        self.completed: dict[str, bool] = {}
        self.seen: dict[str, bool] = {}
        self.acknowledged: set[str] = set()
        self.ready = False

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            progress=dict(self.progress),
            completed=dict(self.completed),
            seen=dict(self.seen),
        )

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> ProgressSnapshot:
        """
        Merge local cache, seen markers and enrollment records.

        The merged maps are written back to the local cache. The tracker is
        ready afterwards even if the store could not be read.
        """
        if self.preview:
            self.ready = True
            return self.snapshot()

        local = self.cache.load()
        self.progress = dict(local.progress)
        self.completed = dict(local.completed)
        self.seen = dict(local.seen)
        threshold = config.COMPLETION_THRESHOLD

        try:
            seen_rows = self.store.fetch_all(
                "SELECT class_id, seen, progress FROM seen_classes WHERE user_id = ?",
                (self.user_id,)
            )
        except sqlite3.Error as exc:
            logger.warning(f"Could not read seen classes for {self.user_id}: {exc}")
            seen_rows = []

        for row in seen_rows:
            class_id = row["class_id"]
            doc_seen = bool(row["seen"])
            doc_pct = float(row["progress"] or 0)
            local_pct = self.progress.get(class_id, 0.0)
            if doc_seen:
                self.seen[class_id] = True
                self.progress[class_id] = max(local_pct, doc_pct, 100.0)
            else:
                self.progress[class_id] = max(local_pct, doc_pct)
            if doc_seen or doc_pct >= threshold:
                self.completed[class_id] = True

        if self.enrollment_id:
            try:
                records = self.store.fetch_all(
                    """SELECT class_id, progress, completed, seen FROM class_progress
                       WHERE enrollment_id = ?""",
                    (self.enrollment_id,)
                )
            except sqlite3.Error as exc:
                logger.warning(f"Could not read progress of {self.enrollment_id}: {exc}")
                records = []

            for row in records:
                class_id = row["class_id"]
                doc_pct = float(row["progress"] or 0)
                doc_completed = bool(row["completed"])
                doc_seen = bool(row["seen"]) or doc_completed
                local_pct = self.progress.get(class_id, 0.0)

                merged_seen = (doc_seen or self.seen.get(class_id, False)
                               or max(doc_pct, local_pct) >= threshold)
                merged_completed = (doc_completed or self.completed.get(class_id, False)
                                    or merged_seen)
                self.seen[class_id] = merged_seen
                self.completed[class_id] = merged_completed
                if merged_seen:
                    self.progress[class_id] = max(100.0, local_pct)
                else:
                    self.progress[class_id] = max(doc_pct, local_pct)

        self.ready = True
        snapshot = self.snapshot()
        self.cache.save(snapshot)
        return snapshot

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def effective_pct(self, class_id: str) -> float:
        """Recorded progress, lifted to 100 once the class is completed or seen."""
        if self.preview:
            return 100.0
        pct = self.progress.get(class_id, 0.0)
        if self.completed.get(class_id) or self.seen.get(class_id):
            return max(pct, 100.0)
        return pct

    def get_class_progress(self, class_id: str) -> Optional[ClassProgress]:
        """Server record of one class for this enrollment."""
        if not self.enrollment_id:
            return None
        row = self.store.fetch_one(
            "SELECT * FROM class_progress WHERE enrollment_id = ? AND class_id = ?",
            (self.enrollment_id, class_id)
        )
        if not row:
            return None
        return ClassProgress(
            enrollment_id=row["enrollment_id"],
            class_id=row["class_id"],
            progress=row["progress"] or 0,
            completed=bool(row["completed"]),
            seen=bool(row["seen"]),
            last_updated=parse_timestamp(row["last_updated"]),
            completed_at=parse_timestamp(row["completed_at"]),
            quiz_completed=bool(row["quiz_completed"]),
            quiz_answers=from_json(row["quiz_answers"], {}),
            grade=row["grade"],
            status=row["status"],
        )

    # -------------------------------------------------------------------------
    # Progress events
    # -------------------------------------------------------------------------

    def record(self, item: FeedClass, pct: float, forum_ok: bool = True) -> ProgressUpdate:
        """
        Handle a progress report from a class player.

        Progress is persisted when it rises into a new SAVE_STEP_PCT bucket or
        crosses the assignment prompt mark. The class becomes completed (and
        seen) once the required percentage is reached and the forum, if any,
        is satisfied.
        """
        if self.preview:
            return ProgressUpdate(class_id=item.id, pct=100.0)

        previous = self.progress.get(item.id, 0.0)
        max_pct = max(pct, previous)
        required = required_pct(item.type)
        self.progress[item.id] = max_pct

        step = config.SAVE_STEP_PCT
        prompt_mark = config.ASSIGNMENT_PROMPT_PCT
        crossed_prompt = max_pct >= prompt_mark and previous < prompt_mark
        update = ProgressUpdate(class_id=item.id, pct=max_pct)

        if max_pct > previous + 0.01 and (
            math.floor(max_pct / step) > math.floor(previous / step) or crossed_prompt
        ):
            self.save(item.id, max_pct, previous, required)
            update.persisted = True

        was_completed = self.completed.get(item.id, False)
        if forum_ok and ((not was_completed and max_pct >= required) or self.seen.get(item.id)):
            self.completed[item.id] = True
            self.seen[item.id] = True
            if not was_completed:
                update.just_completed = True
                if not update.persisted:
                    self.save(item.id, max(max_pct, required), previous, required)
                    update.persisted = True

        if crossed_prompt and item.has_assignment and item.id not in self.acknowledged:
            update.prompt_assignment = True
        return update

    def acknowledge_assignment(self, class_id: str):
        self.acknowledged.add(class_id)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, class_id: str, pct: float, previous: float, required: float) -> bool:
        """
        Persist progress of one class.

        The local cache is merged first; store errors are logged and reported
        through the return value, never raised.

        Returns:
            True if the store write succeeded
        """
        if self.preview:
            return False

        new_pct = max(pct, previous)
        completed = new_pct >= required
        just_completed = previous < required and completed
        stored_pct = max(new_pct, 100.0) if completed else new_pct
        seen = completed or self.seen.get(class_id, False)
        seen_marker = completed or new_pct >= config.COMPLETION_THRESHOLD

        self.cache.merge(ProgressSnapshot(
            progress={class_id: stored_pct},
            completed={class_id: completed},
            seen={class_id: seen},
        ))

        stamp = now()
        try:
            with self.store.transaction() as conn:
                if self.enrollment_id:
                    conn.execute(
                        """INSERT INTO class_progress (enrollment_id, class_id, progress,
                                                       completed, seen, last_updated,
                                                       completed_at)
                           VALUES (?, ?, ?, ?, ?, ?, ?)
                           ON CONFLICT(enrollment_id, class_id) DO UPDATE SET
                             progress = MAX(progress, excluded.progress),
                             completed = MAX(completed, excluded.completed),
                             seen = MAX(seen, excluded.seen),
                             last_updated = excluded.last_updated,
                             completed_at = COALESCE(completed_at, excluded.completed_at)""",
                        (self.enrollment_id, class_id, stored_pct, int(completed), int(seen),
                         stamp, stamp if just_completed else None)
                    )
                conn.execute(
                    """INSERT INTO seen_classes (user_id, class_id, seen, progress, updated_at)
                       VALUES (?, ?, ?, ?, ?)
                       ON CONFLICT(user_id, class_id) DO UPDATE SET
                         seen = MAX(seen, excluded.seen),
                         progress = MAX(progress, excluded.progress),
                         updated_at = excluded.updated_at""",
                    (self.user_id, class_id, int(seen_marker), stored_pct, stamp)
                )
        except sqlite3.Error as exc:
            logger.warning(f"Progress write failed for {class_id}: {exc}")
            return False
        return True

    def flush(self, items: Iterable[FeedClass]) -> int:
        """
        Persist everything before the page goes away.

        The local cache is written first; then every class with progress is
        saved to the store.

        Returns:
            Number of classes whose store write succeeded
        """
        if self.preview:
            return 0
        self.cache.save(self.cache.load().merged_with(self.snapshot()))

        saved = 0
        for item in items:
            pct = self.progress.get(item.id, 0.0)
            if pct <= 0:
                continue
            if self.save(item.id, pct, pct - 1, required_pct(item.type)):
                saved += 1
        return saved

    def save_quiz_result(self, class_id: str, answers: dict[str, str],
                         detailed: list[dict], grade: Optional[float], status: str) -> bool:
        """Store a submitted quiz on the enrollment record."""
        if self.preview or not self.enrollment_id:
            return False
        stamp = now()
        try:
            self.store.execute(
                """INSERT INTO class_progress (enrollment_id, class_id, last_updated,
                                               quiz_completed, quiz_answers,
                                               quiz_answers_detailed, grade, status)
                   VALUES (?, ?, ?, 1, ?, ?, ?, ?)
                   ON CONFLICT(enrollment_id, class_id) DO UPDATE SET
                     last_updated = excluded.last_updated,
                     quiz_completed = 1,
                     quiz_answers = excluded.quiz_answers,
                     quiz_answers_detailed = excluded.quiz_answers_detailed,
                     grade = excluded.grade,
                     status = excluded.status""",
                (self.enrollment_id, class_id, stamp, to_json(answers),
                 to_json(detailed), grade, status)
            )
        except sqlite3.Error as exc:
            logger.warning(f"Quiz result write failed for {class_id}: {exc}")
            return False
        return True


# -----------------------------------------------------------------------------
# Forum gate
# -----------------------------------------------------------------------------

class ForumGate:
    """
    Tracks whether the student has posted in each class forum.

    Classes without a forum are always satisfied; lookups that fail count
    as not posted.
    """

    def __init__(self, forums: ForumService, user_id: str, preview: bool = False):
        self.forums = forums
        self.user_id = user_id
        self.preview = preview
        self.forum_done: dict[str, bool] = {}

    def is_satisfied(self, item: FeedClass) -> bool:
        if self.preview or not item.forum_enabled:
            return True
        return self.forum_done.get(item.id, False)

    def refresh(self, item: FeedClass) -> bool:
        """Re-read the forum status of one class."""
        if not item.forum_enabled:
            return True
        try:
            done = self.forums.has_student_posted(
                item.class_doc_id, self.user_id, item.forum_required_format
            )
        except sqlite3.Error as exc:
            logger.warning(f"Forum status unavailable for {item.id}: {exc}")
            done = False
        self.forum_done[item.id] = done
        return done

    def load_all(self, items: Iterable[FeedClass]) -> dict[str, bool]:
        for item in items:
            if item.forum_enabled:
                self.refresh(item)
        return dict(self.forum_done)

    def mark_done(self, item: FeedClass):
        self.forum_done[item.id] = True
