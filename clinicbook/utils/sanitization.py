import html
import re
from typing import Optional

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def sanitize_text(value: Optional[str]) -> Optional[str]:
    """
    Clean free text (reasons, notes, item descriptions) before it is stored.

    Control characters are dropped, surrounding whitespace is trimmed and HTML
    special characters are escaped so the text is safe to render in the
    clinic's web views. Blank input is stored as None.
    """
    if value is None:
        return None
    value = _CONTROL_CHARS.sub("", str(value)).strip()
    if not value:
        return None
    return html.escape(value, quote=True)
