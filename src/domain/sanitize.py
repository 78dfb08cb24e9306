import html
import re

_WORD_RE = re.compile(r"\b[\w'-]+\b")


def escape_raw_html(text: str) -> str:
    """
    Neutralise raw HTML in user-authored markdown.

    '<' and '&' are escaped so no tag can open; '>' is left alone so markdown
    blockquotes keep working.
    """
    escaped = html.escape(text, quote=False)
    return escaped.replace("&gt;", ">")


def count_words(text: str) -> int:
    """Approximate word count of markdown text (markup characters are ignored)."""
    return len(_WORD_RE.findall(text))
