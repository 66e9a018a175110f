"""
# Content Sanitizer

HTML sanitization for user-supplied text, built on **bleach**.

| Input | Allowed tags |
|-------|--------------|
| Titles, excerpts, category names, tags | none (markup stripped) |
| Post content | `POST_ALLOWED_TAGS` |
| Comments | `COMMENT_ALLOWED_TAGS` |

Disallowed tags are stripped rather than escaped. Plain fields are stored as text:
the entities bleach produces for bare `<`, `>` and `&` are unescaped again, so
`"R&D"` stays `"R&D"`. Post content and comments are HTML and keep bleach's escaping.
"""

import html
from typing import List, Optional

import bleach

POST_ALLOWED_TAGS: List[str] = [
    "p", "br", "strong", "em", "code", "pre", "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "blockquote", "a", "img", "hr", "table", "thead", "tbody",
    "tr", "th", "td",
]
COMMENT_ALLOWED_TAGS: List[str] = ["p", "br", "strong", "em", "code", "a"]


def sanitize_plain(value: Optional[str]) -> Optional[str]:
    """Remove all markup and surrounding whitespace, returning plain text."""
    if value is None:
        return None
    return html.unescape(bleach.clean(value, tags=[], strip=True)).strip()


def sanitize_post_content(value: str) -> str:
    return bleach.clean(value, tags=POST_ALLOWED_TAGS, strip=True)


def sanitize_comment(value: str) -> str:
    return bleach.clean(value, tags=COMMENT_ALLOWED_TAGS, strip=True).strip()
