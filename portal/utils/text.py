# portal/utils/text.py
import re
import unicodedata
from typing import Optional

_slug_strip_re = re.compile(r"[^\w\s-]")
_slug_hyphenate_re = re.compile(r"[-\s]+")
_non_alnum_re = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """'Berita Jogja!' -> 'berita-jogja'"""
    if not value:
        return ""
    value = (
        unicodedata.normalize("NFKD", value)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    value = _slug_strip_re.sub("", value).strip().lower()
    return _slug_hyphenate_re.sub("-", value).strip("-")


def to_int_or_none(v) -> Optional[int]:
    if v is None or str(v).strip() == "":
        return None
    try:
        return int(str(v).strip())
    except ValueError:
        return None


def positive_int(v, default: int) -> int:
    """Query-string number; absent, junk or < 1 falls back to `default`."""
    n = to_int_or_none(v)
    if n is None or n < 1:
        return default
    return n


def parse_id_list(v: Optional[str]) -> list[int]:
    """'3, 7,x,9' -> [3, 7, 9]"""
    if not v:
        return []
    ids = (to_int_or_none(part) for part in v.split(","))
    return [i for i in ids if i is not None]


def filename_stem(filename: str, max_length: int = 50) -> str:
    """
    Lowercase alphanumeric stem for storage keys.
    'My Cover Photo.png' -> 'my-cover-photo'
    """
    name = (filename or "").strip()
    if "." in name:
        name = name.rsplit(".", 1)[0]
    stem = _non_alnum_re.sub("-", name.lower()).strip("-")
    return stem[:max_length].rstrip("-")
