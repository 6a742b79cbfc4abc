from __future__ import annotations

import re
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from rinkai.engine.scoring import ScoreRecord

# Query key -> ScoreRecord field.
SHARE_KEYS: dict[str, str] = {
    "p": "points",
    "w": "withdrawal",
    "m": "mobilization",
    "d": "enrollment_diff",
    "exp": "experience",
    "enr": "enrollment",
    "sat": "satisfaction",
    "acc": "accounting",
}


_LEADING_INT_RE = re.compile(r"\s*([+-]?[0-9]+)")


def _as_int(x: object, default: int = 0) -> int:
    """Read the leading integer of `x` ("3.5" -> 3, "7pts" -> 7), else `default`."""
    m = _LEADING_INT_RE.match(str(x))
    return int(m.group(1)) if m else default


def encode_score_query(score: ScoreRecord) -> str:
    return urlencode({key: getattr(score, attr) for key, attr in SHARE_KEYS.items()})


def share_url(base_url: str, score: ScoreRecord) -> str:
    return f"{base_url}?score={quote(encode_score_query(score), safe='')}"


def _from_params(params: dict[str, list[str]]) -> ScoreRecord:
    values = {attr: _as_int(params.get(key, ["0"])[0]) for key, attr in SHARE_KEYS.items()}
    return ScoreRecord(**values)


def decode_score_query(query: str) -> ScoreRecord:
    """Decode a `p=..&w=..` query. Missing or bad fields read as 0."""
    return _from_params(parse_qs(query, keep_blank_values=True))


def score_from_url(url: str) -> ScoreRecord | None:
    """Extract the shared score from a full URL, or None if it carries none.

    Links whose inner query was not escaped (`?score=p=1&w=2...`) spill the
    remaining keys into the outer query; those are picked up as well.
    """
    try:
        outer = parse_qs(urlsplit(url).query, keep_blank_values=True)
    except ValueError:
        return None
    inner = outer.get("score")
    if not inner:
        return None
    params = parse_qs(inner[0], keep_blank_values=True)
    for key in SHARE_KEYS:
        if key not in params and key in outer:
            params[key] = outer[key]
    return _from_params(params)
