"""
Media helpers - Embeds and progress percentages for class players.

Provides:
- YouTube/Vimeo embed URL conversion
- Progress percentages for video, image carousels and timed single images
- TextScrollTracker: reach-the-end detection for text classes
"""

import html
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

from aulafeed import config


_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "youtu.be", "www.youtu.be"}
_VIMEO_HOSTS = {"vimeo.com", "www.vimeo.com", "player.vimeo.com"}
_VIDEO_ID_RE = re.compile(r"[A-Za-z0-9_-]{6,20}")


def _host(url: str) -> str:
    host = urlparse(url.strip()).netloc.lower()
    return host.split(":", 1)[0]


def is_embed_url(url: Optional[str]) -> bool:
    """True for YouTube/Vimeo links, which play through an iframe."""
    if not url:
        return False
    host = _host(url)
    return host in _YOUTUBE_HOSTS or host in _VIMEO_HOSTS


def _youtube_embed(url: str) -> str:
    parsed = urlparse(url.strip())
    host = _host(url)
    video_id = ""
    if host.endswith("youtu.be"):
        video_id = parsed.path.lstrip("/").split("/", 1)[0]
    elif parsed.path == "/watch":
        video_id = parse_qs(parsed.query).get("v", [""])[0]
    elif parsed.path.startswith("/embed/"):
        return url.strip()
    if _VIDEO_ID_RE.fullmatch(video_id or ""):
        return f"https://www.youtube.com/embed/{video_id}"
    return url.strip()


def _vimeo_embed(url: str) -> str:
    parsed = urlparse(url.strip())
    parts = [part for part in parsed.path.split("/") if part]
    video_id = next((part for part in parts if part.isdigit()), "")
    if not video_id:
        return url.strip()

    # Private videos carry a hash, either as ?h= or as the path part after the id
    private_hash = parse_qs(parsed.query).get("h", [""])[0]
    if not private_hash:
        after = parts[parts.index(video_id) + 1:]
        if after and not after[0].isdigit() and after[0].isalnum():
            private_hash = after[0]

    embed = f"https://player.vimeo.com/video/{video_id}"
    return f"{embed}?h={private_hash}" if private_hash else embed


def to_embed_url(url: str) -> str:
    """Convert a YouTube/Vimeo page link into its player URL; other URLs are unchanged."""
    if not url:
        return ""
    host = _host(url)
    if host in _YOUTUBE_HOSTS:
        return _youtube_embed(url)
    if host in _VIMEO_HOSTS:
        return _vimeo_embed(url)
    return url.strip()


def render_embed(url: str, title: str = "") -> str:
    """Responsive iframe for an embeddable video."""
    return (
        '<div class="feed-embed">'
        f'<iframe src="{html.escape(to_embed_url(url), quote=True)}" '
        f'title="{html.escape(title, quote=True)}" frameborder="0" '
        'allow="autoplay; fullscreen; picture-in-picture" allowfullscreen></iframe>'
        '</div>'
    )


# -----------------------------------------------------------------------------
# Percentages
# -----------------------------------------------------------------------------

def video_pct(position: float, duration: Optional[float]) -> float:
    """Watched percentage of a video or audio track."""
    if not duration or duration <= 0:
        return 0.0
    return max(0.0, min(100.0, position / duration * 100))


def carousel_pct(index: int, count: int) -> float:
    """
    Progress of an image carousel.

    A single image starts at 0 (it completes through single_image_pct);
    with several images the last one counts as 100.
    """
    if count <= 1:
        return 0.0
    if index >= count - 1:
        return 100.0
    return (max(index, 0) + 1) / count * 100


def carousel_start_index(count: int, effective_pct: float) -> int:
    """First image to show; a finished carousel reopens on its last image."""
    if count <= 0:
        return 0
    return count - 1 if effective_pct >= 100 else 0


def single_image_pct(elapsed_seconds: float,
                     min_seconds: float = config.SINGLE_IMAGE_MIN_SECONDS) -> float:
    """Progress of a lone image, reached by looking at it for min_seconds."""
    if min_seconds <= 0:
        return 100.0
    return max(0.0, min(100.0, elapsed_seconds / min_seconds * 100))


# -----------------------------------------------------------------------------
# Text scroll
# -----------------------------------------------------------------------------

class TextScrollTracker:
    """
    Reach-the-end detection for a scrollable text class.

    The end is only reported after the student interacted, while scrolling
    down, on the second consecutive report at 99 % or more, and only once.
    Dropping under 95 % re-arms the first step.
    """

    END_PCT = 99.0
    RESET_PCT = 95.0

    def __init__(self):
        self.interacted = False
        self.reached_end = False
        self.notified = False
        self._last_top = 0.0

    @staticmethod
    def scroll_pct(scroll_top: float, scroll_height: float, client_height: float) -> float:
        scrollable = scroll_height - client_height
        if scrollable <= 0:
            return 100.0
        return max(0.0, min(100.0, scroll_top / scrollable * 100))

    def mark_interaction(self):
        self.interacted = True

    def report(self, scroll_top: float, scroll_height: float,
               client_height: float) -> tuple[float, bool]:
        """
        Feed one scroll position.

        Returns:
            Tuple of (scroll percentage, reached-end event fired now)
        """
        pct = self.scroll_pct(scroll_top, scroll_height, client_height)
        moving_down = scroll_top >= self._last_top
        self._last_top = scroll_top

        if pct < self.RESET_PCT:
            self.reached_end = False
            return pct, False

        if not (self.interacted and moving_down and pct >= self.END_PCT):
            return pct, False
        if not self.reached_end:
            self.reached_end = True
            return pct, False
        if self.notified:
            return pct, False
        self.notified = True
        return pct, True
