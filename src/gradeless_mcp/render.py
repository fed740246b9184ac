"""HTML and plain-text rendering for lessons.

Pure functions, no I/O. Three audiences:
- browser pages (full HTML documents)
- assistant-host widgets (embeddable HTML fragments)
- assistant replies (plain text)

Every interpolated value goes through :func:`escape`, ids placed in URL
paths are percent-encoded first.
"""

from __future__ import annotations

import html
from collections.abc import Sequence
from urllib.parse import quote

from .models.lesson import Lesson

SITE_TITLE = "Gradeless"
SITE_HEADING = "Gradeless — AI Video Tutorials"

_PAGE_STYLE = "font-family:system-ui,Arial;max-width:900px;margin:18px auto;padding:16px;"
_WIDGET_STYLE = "font-family:system-ui,Arial;max-width:900px;padding:8px;"
_PLAYER_BOX = (
    "position:relative;padding-bottom:56.25%;height:0;overflow:hidden;"
    "border-radius:12px;margin:8px 0;"
)
_PLAYER_FRAME = "position:absolute;top:0;left:0;width:100%;height:100%;border:0;"
_BUTTON_STYLE = "padding:8px 12px;border:1px solid #ddd;border-radius:8px;"


def escape(value: object) -> str:
    """Escape ``& < > " '`` for use in element text and quoted attributes."""
    return html.escape(str(value), quote=True)


def lesson_path(lesson_id: str) -> str:
    """Site-relative URL of a lesson's watch page."""
    return "/lesson/" + quote(str(lesson_id), safe="")


def _document(title: str, body: str) -> str:
    return (
        "<!doctype html>\n"
        '<html lang="en"><head><meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width,initial-scale=1">'
        f"<title>{escape(title)}</title></head>\n"
        f'<body><div style="{_PAGE_STYLE}">\n{body}\n</div></body></html>\n'
    )


def _player(lesson: Lesson) -> str:
    return (
        f'<div style="{_PLAYER_BOX}">'
        f'<iframe src="{escape(lesson.embed_url)}" title="{escape(lesson.title)}" '
        'allow="accelerometer; encrypted-media; picture-in-picture" allowfullscreen '
        f'style="{_PLAYER_FRAME}"></iframe></div>'
    )


# ── Browser pages ────────────────────────────────────────────────────────────


def render_lesson_list_page(lessons: Sequence[Lesson]) -> str:
    """Full page with one clickable card per lesson."""
    cards = "\n".join(
        f'<a href="{escape(lesson_path(lesson.id))}" style="text-decoration:none;color:inherit;">'
        '<div style="padding:16px;border:1px solid #eee;border-radius:12px;margin:10px 0;">'
        f'<h3 style="margin:0 0 6px 0;">{escape(lesson.title)}</h3>'
        f'<p style="margin:0;opacity:.85;">{escape(lesson.desc)}</p>'
        "</div></a>"
        for lesson in lessons
    )
    if not lessons:
        cards = "<p>No lessons available yet.</p>"
    body = (
        f"<h2>{escape(SITE_HEADING)}</h2>\n"
        '<p><a href="/sdk-app/">Open the ChatGPT App view</a></p>\n'
        f"{cards}"
    )
    return _document(SITE_TITLE, body)


def render_lesson_page(lesson: Lesson | None) -> str:
    """Full page with the embedded player, or a not-found page for None."""
    if lesson is None:
        body = "<h2>Lesson not found</h2>\n<p><a href=\"/\">Back to all lessons</a></p>"
        return _document(f"{SITE_TITLE} — Lesson not found", body)
    body = (
        f"<h2>{escape(lesson.title)}</h2>\n"
        f"<p>{escape(lesson.desc)}</p>\n"
        f"{_player(lesson)}\n"
        '<p><a href="/">Back</a></p>'
    )
    return _document(lesson.title, body)


# ── Host widgets ─────────────────────────────────────────────────────────────

# Clicking a data-id button asks the host to run open_lesson; hosts without
# window.openai fall back to the plain link.
_LIST_WIDGET_SCRIPT = """<script>
(function () {
  var root = document.currentScript.parentElement;
  root.addEventListener('click', function (e) {
    var id = e.target && e.target.getAttribute && e.target.getAttribute('data-id');
    if (id && window.openai && window.openai.invokeTool) {
      window.openai.invokeTool('open_lesson', { id: id });
    }
  });
})();
</script>"""


def render_lesson_list_widget(lessons: Sequence[Lesson], base_url: str = "") -> str:
    """Compact lesson list with an "Open lesson" control per entry."""
    items = "\n".join(
        '<div style="border:1px solid #eee;border-radius:12px;padding:12px;">'
        f'<div style="font-weight:600;margin-bottom:6px;">{escape(lesson.title)}</div>'
        f'<div style="opacity:.85;margin-bottom:10px;">{escape(lesson.desc)}</div>'
        '<div style="display:flex;gap:8px;flex-wrap:wrap;">'
        f'<button type="button" data-id="{escape(lesson.id)}" '
        f'style="{_BUTTON_STYLE}cursor:pointer;">Open lesson</button>'
        f'<a href="{escape(base_url + lesson_path(lesson.id))}" target="_blank" rel="noopener" '
        f'style="{_BUTTON_STYLE}text-decoration:none;color:inherit;">Open in tab</a>'
        "</div></div>"
        for lesson in lessons
    )
    return (
        f'<div style="{_WIDGET_STYLE}">\n'
        f'<h3 style="margin:6px 0;">{escape(SITE_TITLE)} Lessons</h3>\n'
        f'<div style="display:flex;flex-direction:column;gap:10px;">\n{items}\n</div>\n'
        f"{_LIST_WIDGET_SCRIPT}\n"
        "</div>"
    )


def render_lesson_player_widget(lesson: Lesson) -> str:
    """Compact player: title, video embed, description."""
    return (
        f'<div style="{_WIDGET_STYLE}">\n'
        f'<div style="font-weight:700;margin:6px 0;">{escape(lesson.title)}</div>\n'
        f"{_player(lesson)}\n"
        f'<div style="opacity:.9;">{escape(lesson.desc)}</div>\n'
        "</div>"
    )


# ── Assistant text ───────────────────────────────────────────────────────────


def render_lesson_summary_text(lessons: Sequence[Lesson]) -> str:
    """Bulleted summary, one paragraph per lesson."""
    if not lessons:
        return f"There are no {SITE_TITLE} lessons available right now."
    entries = "\n\n".join(
        f"• {lesson.title} (ID: {lesson.id})\n  {lesson.desc}" for lesson in lessons
    )
    return (
        f"Here are the available {SITE_TITLE} AI tutorial lessons:\n\n"
        f"{entries}\n\n"
        "To watch a lesson, use open_lesson with the lesson ID."
    )


def render_lesson_detail_text(lesson: Lesson, base_url: str) -> str:
    """Title, description, watch page URL and YouTube URL."""
    return (
        f"**{lesson.title}**\n\n"
        f"{lesson.desc}\n\n"
        f"Watch here: {base_url.rstrip('/')}{lesson_path(lesson.id)}\n\n"
        f"YouTube: {lesson.watch_url}"
    )


def render_lesson_not_found_text(lesson_id: str, valid_ids: Sequence[str]) -> str:
    """Guidance for an unknown id, listing the ids that do exist."""
    if not valid_ids:
        return f"Lesson '{lesson_id}' not found. No lessons are available right now."
    return f"Lesson '{lesson_id}' not found. Available IDs: {', '.join(valid_ids)}"
