import json
import math
import logging
import re
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional

from .base import Normalizer
from voicenotes.types import CategorizedRecord, NormalizedRecord

log = logging.getLogger(__name__)

TITLE_KEYS = ("AI_Title", "Title")
SUMMARY_KEY = "Summary"
SUMMARY_POLICIES = ("drop", "keep")

# Alias -> canonical key; the alias is ignored when the canonical key is also present
ALIASES = {"Title": "AI_Title", "At Cost": "AI Cost"}


class Coercion(str, Enum):
    TITLE = "title"
    SELECT = "select"
    NUMBER_OR_NULL = "number_or_null"
    NUMBER_OR_ZERO = "number_or_zero"
    DATE_OR_NULL = "date_or_null"
    RICH_TEXT = "rich_text"


class FieldRule(NamedTuple):
    kind: Coercion
    target: Optional[str] = None   # output property name; None keeps the input key


# Keys with special handling. Everything else is rich text under its own name.
# Title keys are routed to the database's title property at runtime.
FIELD_RULES: Dict[str, FieldRule] = {
    "AI_Title":           FieldRule(Coercion.TITLE),
    "Title":              FieldRule(Coercion.TITLE),
    "Type":               FieldRule(Coercion.SELECT),
    "AI Cost":            FieldRule(Coercion.NUMBER_OR_NULL, "AI Cost"),
    "At Cost":            FieldRule(Coercion.NUMBER_OR_NULL, "AI Cost"),
    "Duration (Seconds)": FieldRule(Coercion.NUMBER_OR_ZERO),
    "Date":               FieldRule(Coercion.DATE_OR_NULL),
}
DEFAULT_RULE = FieldRule(Coercion.RICH_TEXT)


class RuleNormalizer(Normalizer):
    """
    Table-driven normalizer:
    takes the loose categorizer output and shapes every key into
    the typed property value the page-create API expects.

    summary_policy decides what happens to `Summary` when an explicit
    title (AI_Title/Title) is also present:
      "drop" - Summary is consumed and not written anywhere (historical behaviour)
      "keep" - Summary is written as a rich text property of its own
    Without an explicit title, Summary always becomes the title.
    """
    def __init__(self, summary_policy: str = "drop"):
        if summary_policy not in SUMMARY_POLICIES:
            raise ValueError(f"summary_policy must be one of {SUMMARY_POLICIES}, got {summary_policy!r}")
        self.summary_policy = summary_policy

    def normalize_record(self, rec: CategorizedRecord, title_field: str) -> NormalizedRecord:
        if not title_field:
            raise ValueError("title_field is required")
        out: NormalizedRecord = {}

        for key, value in rec.items():
            rule = self.rule_for(key, rec)
            if rule is None:
                log.warning("%s dropped: the record already has %s", key, _superseded_by(key))
                continue
            name = title_field if rule.kind is Coercion.TITLE else (rule.target or key)
            out[name] = COERCIONS[rule.kind](value)
        return out

    def rule_for(self, key: str, rec: CategorizedRecord) -> Optional[FieldRule]:
        """
        Resolve the rule for one key of `rec`; None means the key is consumed without output.
        Decided from the whole record, so key order never changes the result.
        """
        if key == SUMMARY_KEY:
            if not any(k in rec for k in TITLE_KEYS):
                return FieldRule(Coercion.TITLE)
            return DEFAULT_RULE if self.summary_policy == "keep" else None
        if key in ALIASES and ALIASES[key] in rec:
            return None
        return FIELD_RULES.get(key, DEFAULT_RULE)


def _superseded_by(key: str) -> str:
    if key == SUMMARY_KEY:
        return "an explicit title"
    return repr(ALIASES[key])


# --- Individual value helpers ---

def stringify(v: Any) -> str:
    """Strings pass through; anything else gets its compact JSON text."""
    if isinstance(v, str):
        return v
    return json.dumps(v, ensure_ascii=False, separators=(",", ":"))

def text_segment(content: str) -> list:
    return [{"text": {"content": content}}]

# Leading numeric prefix, the way C's strtod reads "1.5 USD" as 1.5
_NUMBER = re.compile(r"\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

def parse_number(v: Any) -> Optional[float]:
    """
    Numbers pass through; strings are read by their numeric prefix; anything else is None.
    Non-finite results (inf, nan) count as unparseable.
    """
    if isinstance(v, bool) or v is None:
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, float):
        n = v
    else:
        m = _NUMBER.match(stringify(v))
        if not m:
            return None
        n = float(m.group(0))
    return n if math.isfinite(n) else None


# --- Coercions, one per Coercion kind ---

def as_title(v: Any) -> dict:
    return {"title": text_segment(stringify(v))}

def as_select(v: Any) -> dict:
    return {"select": {"name": stringify(v)}}

def as_number_or_null(v: Any) -> dict:
    return {"number": parse_number(v)}

def as_number_or_zero(v: Any) -> dict:
    n = parse_number(v)
    return {"number": 0 if n is None else n}

def as_date_or_null(v: Any) -> dict:
    if v is None:
        return {"date": None}
    s = stringify(v)
    if s in ("", "null"):
        return {"date": None}
    return {"date": {"start": s}}

def as_rich_text(v: Any) -> dict:
    """Lists are flattened to 'a, b, c' (no brackets); scalars are stringified."""
    if isinstance(v, (list, tuple)):
        content = ", ".join(stringify(item) for item in v)
    else:
        content = stringify(v)
    return {"rich_text": text_segment(content)}


COERCIONS: Dict[Coercion, Callable[[Any], dict]] = {
    Coercion.TITLE: as_title,
    Coercion.SELECT: as_select,
    Coercion.NUMBER_OR_NULL: as_number_or_null,
    Coercion.NUMBER_OR_ZERO: as_number_or_zero,
    Coercion.DATE_OR_NULL: as_date_or_null,
    Coercion.RICH_TEXT: as_rich_text,
}
