import re
from typing import Optional

from bs4 import BeautifulSoup

# Leading number only, the way a browser's parseInt/parseFloat read "14*" or "1.542 "
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def clean_text(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = re.sub(r"\s+", " ", s.strip())
    return s or None


def parse_int_or(s: Optional[str], default: int = 0) -> int:
    """Leading integer of ``s``; ``default`` when absent or zero."""
    if not s:
        return default
    m = _LEADING_INT.match(s)
    if not m:
        return default
    return int(m.group(1)) or default


def parse_float_or(s: Optional[str], default: float = 0.0) -> float:
    if not s:
        return default
    m = _LEADING_FLOAT.match(s)
    if not m:
        return default
    return float(m.group(1)) or default


def soup_from_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def element_text(el) -> str:
    """Trimmed text content of a bs4 element (children concatenated as-is)."""
    return el.get_text().strip() if el is not None else ""


def text_lines(text: Optional[str]) -> list[str]:
    """Non-empty, stripped lines of a rendered text block."""
    return [line.strip() for line in (text or "").splitlines() if line.strip()]
