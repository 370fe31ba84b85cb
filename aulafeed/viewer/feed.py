"""
Feed renderer - Class cards, course tree and engagement widgets.

Provides:
- Class header card with type badge and progress bar
- Gate notice when the student tries to skip ahead
- Course/lesson tree for the sidebar
- Comment threads
"""

import html

from aulafeed.classroom import ClassAvailability, GateDecision, NavigationCourse
from aulafeed.schemas import Comment, FeedClass


TYPE_LABELS = {
    "video": ("▶", "Video"),
    "audio": ("♪", "Audio"),
    "text": ("¶", "Reading"),
    "image": ("▣", "Images"),
    "quiz": ("?", "Quiz"),
}

STATUS_LABELS = {
    ClassAvailability.COMPLETED: "Completed",
    ClassAvailability.IN_PROGRESS: "In progress",
    ClassAvailability.AVAILABLE: "Not started",
    ClassAvailability.LOCKED: "Locked",
}

STATUS_ICONS = {
    ClassAvailability.COMPLETED: "✓",
    ClassAvailability.IN_PROGRESS: "◐",
    ClassAvailability.AVAILABLE: "○",
    ClassAvailability.LOCKED: "◌",
}


def get_feed_css() -> str:
    """Get CSS styles for the feed page."""
    return """
    <style>
    .feed-card {
        background: white;
        border-radius: 14px;
        padding: 1.2em 1.5em;
        margin-bottom: 1em;
        box-shadow: 0 2px 10px rgba(0,0,0,0.06);
    }
    .feed-card-meta {
        color: #777;
        font-size: 0.85em;
        margin-bottom: 0.3em;
    }
    .feed-card-title {
        font-size: 1.4em;
        font-weight: 700;
        color: #1a1a2e;
        margin-bottom: 0.6em;
    }
    .feed-badge {
        display: inline-block;
        background: #ede7f6;
        color: #5e35b1;
        border-radius: 999px;
        padding: 0.1em 0.7em;
        font-size: 0.8em;
        margin-right: 0.5em;
    }
    .feed-progress {
        background: #eee;
        border-radius: 999px;
        height: 8px;
        overflow: hidden;
    }
    .feed-progress-fill {
        background: linear-gradient(90deg, #7e57c2, #26a69a);
        height: 100%;
    }
    .feed-progress-label {
        color: #666;
        font-size: 0.8em;
        text-align: right;
        margin-top: 0.2em;
    }
    .feed-gate {
        background: #fff3e0;
        border-left: 4px solid #fb8c00;
        border-radius: 8px;
        padding: 0.8em 1em;
        color: #e65100;
        margin: 0.8em 0;
    }
    .feed-embed {
        position: relative;
        padding-top: 56.25%;
    }
    .feed-embed iframe {
        position: absolute;
        inset: 0;
        width: 100%;
        height: 100%;
        border-radius: 10px;
    }
    .feed-tree-course {
        font-weight: 700;
        margin: 0.6em 0 0.2em 0;
    }
    .feed-tree-item {
        padding: 0.15em 0 0.15em 0.8em;
        font-size: 0.92em;
        color: #333;
    }
    .feed-tree-item.active {
        font-weight: 700;
        color: #5e35b1;
    }
    .feed-tree-item.locked {
        color: #aaa;
    }
    .feed-comment {
        border-bottom: 1px solid #f0f0f0;
        padding: 0.5em 0;
    }
    .feed-comment.reply {
        margin-left: 1.5em;
    }
    .feed-comment-author {
        font-weight: 600;
        font-size: 0.9em;
    }
    .feed-comment-date {
        color: #999;
        font-size: 0.8em;
        margin-left: 0.5em;
    }
    </style>
    """


def render_progress_bar(pct: float) -> str:
    pct = max(0.0, min(100.0, pct))
    return (
        '<div class="feed-progress">'
        f'<div class="feed-progress-fill" style="width: {pct:.0f}%"></div>'
        '</div>'
        f'<div class="feed-progress-label">{pct:.0f}%</div>'
    )


def render_class_header(item: FeedClass, pct: float, position: int, total: int) -> str:
    """
    Render the header card of a feed class.

    Args:
        item: Feed class
        pct: Effective progress percentage
        position: Zero-based index in the feed
        total: Number of classes in the feed
    """
    icon, label = TYPE_LABELS.get(item.type, ("•", item.type.title() or "Class"))
    meta = " · ".join(
        part for part in (item.course_title, item.lesson_title, f"{position + 1}/{total}") if part
    )
    parts = ['<div class="feed-card">']
    parts.append(f'<div class="feed-card-meta">{html.escape(meta)}</div>')
    parts.append(
        f'<div class="feed-card-title"><span class="feed-badge">{icon} {html.escape(label)}</span>'
        f'{html.escape(item.title)}</div>'
    )
    parts.append(render_progress_bar(pct))
    parts.append('</div>')
    return ''.join(parts)


def render_gate_notice(decision: GateDecision) -> str:
    if decision.allowed:
        return ""
    return f'<div class="feed-gate">{html.escape(decision.reason)}</div>'


def render_course_tree(tree: list[NavigationCourse]) -> str:
    """
    Render the sidebar outline.

    Collapsed lessons show only their completion count.
    """
    parts = []
    for course in tree:
        parts.append(
            f'<div class="feed-tree-course">{html.escape(course.title)} '
            f'({course.completed_count}/{course.total_count})</div>'
        )
        for lesson in course.lessons:
            marker = "▸" if lesson.collapsed else "▾"
            parts.append(
                f'<div class="feed-tree-item">{marker} {html.escape(lesson.title)} '
                f'({lesson.completed_count}/{lesson.total_count})</div>'
            )
            if lesson.collapsed:
                continue
            for nav in lesson.items:
                classes = ["feed-tree-item"]
                if nav.is_active:
                    classes.append("active")
                if nav.availability == ClassAvailability.LOCKED:
                    classes.append("locked")
                parts.append(
                    f'<div class="{" ".join(classes)}" style="padding-left: 1.6em">'
                    f'{STATUS_ICONS[nav.availability]} {html.escape(nav.item.title)}</div>'
                )
    return ''.join(parts)


def render_comment(comment: Comment, reply: bool = False) -> str:
    css = "feed-comment reply" if reply else "feed-comment"
    date = comment.created_at.strftime("%Y-%m-%d %H:%M")
    return (
        f'<div class="{css}">'
        f'<span class="feed-comment-author">{html.escape(comment.author)}</span>'
        f'<span class="feed-comment-date">{date}</span>'
        f'<div>{html.escape(comment.text)}</div>'
        '</div>'
    )
