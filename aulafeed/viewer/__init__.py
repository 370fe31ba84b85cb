"""
AulaFeed Viewer - Rendering and player helpers for the student feed.

This module provides:
- Media embeds and progress percentages
- Sanitized text classes
- Quiz sessions and rendering
- Feed cards, sidebar tree and comments
"""

from .media import (
    is_embed_url,
    to_embed_url,
    render_embed,
    video_pct,
    carousel_pct,
    carousel_start_index,
    single_image_pct,
    TextScrollTracker,
)

from .text import (
    sanitize_class_html,
    paginate_text,
    get_text_css,
    render_text_class,
)

from .quiz import (
    AnswerFeedback,
    QuizSession,
    option_feedback,
    get_quiz_css,
    render_quiz_question,
    render_quiz_score,
)

from .feed import (
    get_feed_css,
    render_progress_bar,
    render_class_header,
    render_gate_notice,
    render_course_tree,
    render_comment,
    TYPE_LABELS,
    STATUS_LABELS,
)

__all__ = [
    # Media
    "is_embed_url",
    "to_embed_url",
    "render_embed",
    "video_pct",
    "carousel_pct",
    "carousel_start_index",
    "single_image_pct",
    "TextScrollTracker",
    # Text
    "sanitize_class_html",
    "paginate_text",
    "get_text_css",
    "render_text_class",
    # Quiz
    "AnswerFeedback",
    "QuizSession",
    "option_feedback",
    "get_quiz_css",
    "render_quiz_question",
    "render_quiz_score",
    # Feed
    "get_feed_css",
    "render_progress_bar",
    "render_class_header",
    "render_gate_notice",
    "render_course_tree",
    "render_comment",
    "TYPE_LABELS",
    "STATUS_LABELS",
]
