"""
Best-effort recovery of the schedule JSON object from free-text model output.

The model is asked for bare JSON but regularly wraps it in markdown fences,
adds prose around it, or runs out of output tokens mid-object. Everything
here is pure string handling; nothing raises on bad input.
"""

import json
import re
from typing import List, NamedTuple, Optional, Tuple

JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
ANY_FENCE = re.compile(r"```[A-Za-z]*\s*([\s\S]*?)\s*```")
OPEN_FENCE = re.compile(r"```(?:[A-Za-z]+)?\s*([\s\S]*)$")
TRAILING_COMMA = re.compile(r",\s*([}\]])")

_CLOSER_FOR = {"{": "}", "[": "]"}
_OPENER_FOR = {"}": "{", "]": "["}

LIST_SECTIONS = (
    "workload_breakdown",
    "weekly_schedule",
    "buffers",
    "conflicts",
    "tradeoffs",
    "assumptions",
    "notes_for_user",
)

DAY_CODES = ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su")
_DAY_WORDS = {
    "mon": "Mo", "monday": "Mo",
    "tue": "Tu", "tues": "Tu", "tuesday": "Tu",
    "wed": "We", "weds": "We", "wednesday": "We",
    "thu": "Th", "thur": "Th", "thurs": "Th", "thursday": "Th",
    "fri": "Fr", "friday": "Fr",
    "sat": "Sa", "saturday": "Sa",
    "sun": "Su", "sunday": "Su",
}
# "S" is left out: it could be Saturday or Sunday.
_DAY_LETTERS = {"M": "Mo", "T": "Tu", "W": "We", "R": "Th", "F": "Fr", "U": "Su"}


class ScanResult(NamedTuple):
    complete_end: Optional[int]   # index just past the closing brace, if the object closed
    malformed: bool               # mismatched closer; give up
    stack: List[str]              # openers still open at end of input
    in_string: bool
    string_is_key: bool
    safe_end: int                 # last cut point where the prefix is a complete value
    safe_stack: List[str]         # openers open at safe_end
    escaped: bool = False         # input ended right after a backslash inside a string


def _fenced_body(text: str) -> str:
    m = JSON_FENCE.search(text) or ANY_FENCE.search(text)
    if m:
        return m.group(1)
    # Truncated output: opening fence, no closing fence.
    if text.count("```") == 1:
        m = OPEN_FENCE.search(text)
        if m:
            return m.group(1)
    return text


def scan_json_object(fragment: str) -> ScanResult:
    """
    Walks fragment (which starts at '{') tracking string state and open brackets.
    Stops at the brace that closes the outermost object.
    """
    stack: List[str] = []
    in_string = False
    escaped = False
    string_is_key = False
    expect_key = False
    safe_end = 0
    safe_stack: List[str] = []

    for i, ch in enumerate(fragment):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
                if not string_is_key:
                    safe_end, safe_stack = i + 1, list(stack)
            continue

        if ch == '"':
            in_string = True
            string_is_key = expect_key and bool(stack) and stack[-1] == "{"
        elif ch in _CLOSER_FOR:
            stack.append(ch)
            expect_key = ch == "{"
            safe_end, safe_stack = i + 1, list(stack)
        elif ch in _OPENER_FOR:
            if not stack or stack[-1] != _OPENER_FOR[ch]:
                return ScanResult(None, True, stack, False, False, safe_end, safe_stack)
            stack.pop()
            expect_key = False
            if not stack:
                return ScanResult(i + 1, False, [], False, False, i + 1, [])
            safe_end, safe_stack = i + 1, list(stack)
        elif ch == ",":
            # Everything before a separator is a complete value.
            safe_end, safe_stack = i, list(stack)
            expect_key = bool(stack) and stack[-1] == "{"
        elif ch == ":":
            expect_key = False

    return ScanResult(None, False, stack, in_string, string_is_key, safe_end, safe_stack, escaped)


def _closing(stack: List[str]) -> str:
    return "".join(_CLOSER_FOR[opener] for opener in reversed(stack))


def _loads(candidate: str):
    try:
        return json.loads(candidate)
    except ValueError:
        return None


PARTIAL_UNICODE_ESCAPE = re.compile(r"(\\+)u[0-9A-Fa-f]{0,3}$")


def _close_string(fragment: str, escaped: bool) -> str:
    """Drops an unfinished escape at the end of a truncated string value."""
    if escaped:
        return fragment[:-1]
    m = PARTIAL_UNICODE_ESCAPE.search(fragment)
    # An even run of backslashes is complete "\\" escapes followed by a literal "u".
    if m and len(m.group(1)) % 2 == 1:
        return fragment[:m.end(1) - 1]
    return fragment


def balance_json_fragment(fragment: str) -> Optional[str]:
    """
    Repairs a truncated JSON object by closing whatever is still open.

    Tries, in order: closing an unterminated string value, closing the brackets
    after the raw tail, and cutting back to the last complete value. Returns
    the first repaired text that parses, else None.
    """
    start = fragment.find("{")
    if start == -1:
        return None
    fragment = fragment[start:]
    scan = scan_json_object(fragment)
    if scan.malformed:
        return None
    if scan.complete_end is not None:
        candidate = fragment[:scan.complete_end]
        return candidate if _loads(candidate) is not None else None

    candidates = []
    if scan.in_string and not scan.string_is_key:
        candidates.append(_close_string(fragment, scan.escaped) + '"' + _closing(scan.stack))
    elif not scan.in_string:
        tail = fragment.rstrip().rstrip(",")
        candidates.append(tail + _closing(scan.stack))
    candidates.append(fragment[:scan.safe_end] + _closing(scan.safe_stack))

    for candidate in candidates:
        if isinstance(_loads(candidate), dict):
            return candidate
    return None


def _recover_object(text: str) -> Optional[dict]:
    start = text.find("{")
    if start == -1:
        return None
    fragment = text[start:]
    scan = scan_json_object(fragment)
    if scan.complete_end is not None:
        candidate = fragment[:scan.complete_end]
        parsed = _loads(candidate)
        if parsed is None:
            parsed = _loads(TRAILING_COMMA.sub(r"\1", candidate))
        return parsed if isinstance(parsed, dict) else None
    if scan.malformed:
        return None
    repaired = balance_json_fragment(fragment)
    return _loads(repaired) if repaired else None


def extract_schedule_json(text: str) -> Optional[dict]:
    """
    Pulls the schedule object out of a model response.
    Returns a dict, or None when nothing object-shaped can be recovered.
    """
    if not text or not text.strip():
        return None

    fenced = _fenced_body(text).strip()
    try:
        parsed = json.loads(fenced)
    except ValueError:
        pass
    else:
        return parsed if isinstance(parsed, dict) else None

    recovered = _recover_object(fenced)
    if recovered is None and fenced != text.strip():
        recovered = _recover_object(text)
    return recovered


# ── Shape normalization ───────────────────────────────────────────────────────

def _day_tokens(word: str) -> List[str]:
    lowered = word.lower()
    if lowered in _DAY_WORDS:
        return [_DAY_WORDS[lowered]]
    # Packed codes such as "MoWeFr" or "TuTh", or registrar letters such as
    # "MWF", "TTh" and "TR". The whole word must be consumed.
    tokens = []
    i = 0
    while i < len(word):
        pair = word[i:i + 2].title()
        if pair in DAY_CODES:
            tokens.append(pair)
            i += 2
        elif word[i].upper() in _DAY_LETTERS:
            tokens.append(_DAY_LETTERS[word[i].upper()])
            i += 1
        else:
            return []
    return tokens


def normalize_days(raw) -> List[str]:
    """Accepts "MoWeFr", "Mon, Wed", ["Mo", "We"] or ["Monday"]; returns ordered unique codes."""
    if isinstance(raw, str):
        words = re.findall(r"[A-Za-z]+", raw)
    elif isinstance(raw, (list, tuple)):
        words = []
        for item in raw:
            if isinstance(item, str):
                words.extend(re.findall(r"[A-Za-z]+", item))
    else:
        return []
    found = set()
    for word in words:
        found.update(_day_tokens(word))
    return [d for d in DAY_CODES if d in found]


def _as_float(raw, default: float = 0.0) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return default


def _as_int(raw, default: int = 0) -> int:
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return default


def _opt_str(raw) -> Optional[str]:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def _coerce_schedule_item(raw) -> Optional[dict]:
    if not isinstance(raw, dict):
        return None
    title = _opt_str(raw.get("title"))
    start = _opt_str(raw.get("start"))
    end = _opt_str(raw.get("end"))
    days = normalize_days(raw.get("days"))
    if not title or not start or not end or not days:
        return None
    return {
        "title": title,
        "type": (_opt_str(raw.get("type")) or "other").lower(),
        "course_id": _opt_str(raw.get("course_id")),
        "days": days,
        "start": start,
        "end": end,
        "location": _opt_str(raw.get("location")),
        "recurrence": _opt_str(raw.get("recurrence")) or "weekly",
        "priority": _as_int(raw.get("priority")),
        "source": _opt_str(raw.get("source")) or "",
    }


def _coerce_workload(raw) -> Optional[dict]:
    if not isinstance(raw, dict) or not _opt_str(raw.get("course_id")):
        return None
    adjustments = []
    raw_adjustments = raw.get("adjustments")
    for adj in raw_adjustments if isinstance(raw_adjustments, list) else []:
        if isinstance(adj, dict):
            adjustments.append({
                "reason": _opt_str(adj.get("reason")) or "",
                "delta_hours": _as_float(adj.get("delta_hours")),
            })
    return {
        "course_id": _opt_str(raw.get("course_id")),
        "credits": _as_float(raw.get("credits")),
        "base_hours_per_week": _as_float(raw.get("base_hours_per_week")),
        "adjustments": adjustments,
        "total_target_hours_per_week": _as_float(raw.get("total_target_hours_per_week")),
    }


def _coerce_conflict(raw) -> Optional[dict]:
    if not isinstance(raw, dict):
        return None
    return {
        "item": _opt_str(raw.get("item")) or "",
        "resolved_by": _opt_str(raw.get("resolved_by")) or "",
        "details": _opt_str(raw.get("details")) or "",
    }


def _coerce_buffer(raw) -> Optional[dict]:
    if not isinstance(raw, dict):
        return None
    return {
        "before_title": _opt_str(raw.get("before_title")),
        "after_title": _opt_str(raw.get("after_title")),
        "minutes": _as_int(raw.get("minutes")),
    }


def _coerce_text(raw) -> Optional[str]:
    if isinstance(raw, (dict, list)):
        return None
    return _opt_str(raw)


_SECTION_COERCERS = {
    "workload_breakdown": _coerce_workload,
    "weekly_schedule": _coerce_schedule_item,
    "buffers": _coerce_buffer,
    "conflicts": _coerce_conflict,
    "tradeoffs": _coerce_text,
    "assumptions": _coerce_text,
    "notes_for_user": _coerce_text,
}


def coerce_schedule(data) -> Optional[dict]:
    """
    Normalizes a parsed response into the schedule shape the calendar expects.
    Missing or non-list sections become []; unusable entries are dropped.
    """
    if not isinstance(data, dict):
        return None
    out = {}
    for section in LIST_SECTIONS:
        raw_items = data.get(section)
        if not isinstance(raw_items, list):
            out[section] = []
            continue
        coerce = _SECTION_COERCERS[section]
        out[section] = [item for item in (coerce(r) for r in raw_items) if item is not None]
    return out


def parse_schedule_response(text: str) -> Tuple[Optional[dict], Optional[dict]]:
    """Returns (raw_parsed, coerced) for a model response; both None if unrecoverable."""
    parsed = extract_schedule_json(text)
    if parsed is None:
        return None, None
    return parsed, coerce_schedule(parsed)
