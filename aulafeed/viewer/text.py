"""
Text class renderer - Sanitized HTML for text classes.

Provides:
- Allowlist sanitization of teacher-authored HTML
- Plain text to paragraphs
- Pagination used as the scroll surface of a text class
"""

import html
import re

import bleach

from aulafeed.schemas import FeedClass


ALLOWED_TAGS = set(bleach.sanitizer.ALLOWED_TAGS).union({
    "p", "br", "hr", "pre", "code", "span", "div",
    "h1", "h2", "h3", "h4", "u", "s", "sub", "sup",
    "table", "thead", "tbody", "tr", "th", "td",
    "img", "figure", "figcaption",
})

ALLOWED_ATTRIBUTES = {
    **bleach.sanitizer.ALLOWED_ATTRIBUTES,
    "a": ["href", "title", "target", "rel"],
    "img": ["src", "alt", "title", "width", "height"],
    "span": ["class"],
    "div": ["class"],
    "code": ["class"],
    "pre": ["class"],
    "td": ["colspan", "rowspan"],
    "th": ["colspan", "rowspan"],
}

_TAG_RE = re.compile(r"<[a-zA-Z/][^>]*>")


def looks_like_html(content: str) -> bool:
    return bool(_TAG_RE.search(content or ""))


def sanitize_class_html(content: str) -> str:
    """
    Make class content safe to inject into the page.

    HTML goes through the allowlist; plain text becomes escaped paragraphs.
    """
    if not content:
        return ""
    if looks_like_html(content):
        return bleach.clean(content, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES,
                            strip=True)
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", content) if p.strip()]
    return "".join(
        f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs
    )


def paginate_text(content: str, chars_per_page: int = 1800) -> list[str]:
    """
    Split sanitized content into pages at block boundaries.

    Returns:
        List of HTML pages (at least one)
    """
    safe = sanitize_class_html(content)
    blocks = re.split(r"(?<=</p>)|(?<=</h[1-4]>)|(?<=</ul>)|(?<=</ol>)|(?<=</table>)", safe)
    pages: list[str] = []
    current = ""
    for block in blocks:
        if not block.strip():
            continue
        if current and len(current) + len(block) > chars_per_page:
            pages.append(current)
            current = ""
        current += block
    if current or not pages:
        pages.append(current)
    return pages


def get_text_css() -> str:
    """Get CSS styles for text classes."""
    return """
    <style>
    .text-class {
        background: #fffdf7;
        border-radius: 12px;
        padding: 1.5em 2em;
        line-height: 1.75;
        font-size: 1.05em;
        color: #222;
        border: 1px solid #eee4cf;
    }
    .text-class img {
        max-width: 100%;
        border-radius: 8px;
    }
    .text-class-pager {
        color: #888;
        font-size: 0.85em;
        text-align: right;
        margin-top: 0.5em;
    }
    </style>
    """


def render_text_class(item: FeedClass, page: int = 0, pages: list[str] | None = None) -> str:
    """
    Render one page of a text class.

    Args:
        item: Feed class of type text
        page: Zero-based page index
        pages: Pre-computed pages (default: paginate item.content)

    Returns:
        HTML string for the page
    """
    pages = pages if pages is not None else paginate_text(item.content)
    page = min(max(page, 0), len(pages) - 1)
    parts = ['<div class="text-class">', pages[page] or "<p><em>No content.</em></p>", '</div>']
    if len(pages) > 1:
        parts.append(f'<div class="text-class-pager">Page {page + 1} of {len(pages)}</div>')
    return "".join(parts)
