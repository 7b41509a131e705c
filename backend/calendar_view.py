"""
Weekly calendar layout for a coerced schedule.

Turns schedule items (days + "HH:MM" start/end) into a 24-row by 7-column
grid of positioned blocks the results template draws with absolute
positioning. Overlapping items on the same day are split into side-by-side
lanes; priority becomes the z-index so higher-priority blocks draw on top.
"""

from typing import Dict, List, Optional

DAYS = ["Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"]
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
HOURS = list(range(24))

TYPE_COLORS = {
    "class": "#3b82f6",
    "study": "#22c55e",
    "work": "#a855f7",
    "club": "#f97316",
    "fitness": "#ef4444",
    "admin": "#9ca3af",
    "sleep": "#a5b4fc",
    "exam": "#eab308",
    "project": "#ec4899",
}
DEFAULT_TYPE_COLOR = "#6b7280"

TYPE_BADGE_VARIANTS = {
    "class": "default",
    "study": "secondary",
    "work": "default",
    "club": "outline",
    "fitness": "destructive",
    "admin": "secondary",
    "sleep": "outline",
    "exam": "default",
    "project": "default",
}


def parse_time(time_str: str) -> float:
    """'13:30' -> 13.5. Raises ValueError for anything that is not a clock time."""
    parts = str(time_str).strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"not a HH:MM time: {time_str!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 24 and 0 <= minutes < 60) or (hours == 24 and minutes):
        raise ValueError(f"time out of range: {time_str!r}")
    return hours + minutes / 60


def format_time(time_str: str) -> str:
    """'13:05' -> '1:05 PM'; '00:30' -> '12:30 AM'."""
    parts = str(time_str).strip().split(":")
    hours, minutes = int(parts[0]) % 24, int(parts[1])
    period = "PM" if hours >= 12 else "AM"
    display = hours - 12 if hours > 12 else (12 if hours == 0 else hours)
    return f"{display}:{minutes:02d} {period}"


def hour_label(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"


def type_color(item_type: str) -> str:
    return TYPE_COLORS.get(item_type, DEFAULT_TYPE_COLOR)


def type_badge_variant(item_type: str) -> str:
    return TYPE_BADGE_VARIANTS.get(item_type, "outline")


def group_by_day(items: List[dict]) -> Dict[str, List[dict]]:
    return {day: [item for item in items if day in item.get("days", [])] for day in DAYS}


def _timed(items: List[dict]) -> List[dict]:
    """Attaches numeric start/end; drops items whose times do not parse or are empty."""
    timed = []
    for order, item in enumerate(items):
        try:
            start = parse_time(item["start"])
            end = parse_time(item["end"])
        except (KeyError, ValueError, TypeError):
            continue
        if end < start:
            # Overnight item: show the part that falls on its own day.
            end = 24.0
        if end <= start:
            continue
        timed.append({"item": item, "start": start, "end": end, "order": order})
    return timed


def assign_lanes(timed: List[dict]) -> None:
    """
    Greedy lane assignment over clusters of transitively overlapping items.
    Sets 'lane' and 'lanes' on each entry in place.
    """
    ordered = sorted(timed, key=lambda t: (t["start"], -t["item"].get("priority", 0), t["order"]))
    cluster: List[dict] = []
    lane_ends: List[float] = []
    cluster_end = -1.0

    def close_cluster():
        for entry in cluster:
            entry["lanes"] = len(lane_ends)

    for entry in ordered:
        if cluster and entry["start"] >= cluster_end:
            close_cluster()
            cluster, lane_ends = [], []
        for lane, lane_end in enumerate(lane_ends):
            if lane_end <= entry["start"]:
                lane_ends[lane] = entry["end"]
                entry["lane"] = lane
                break
        else:
            entry["lane"] = len(lane_ends)
            lane_ends.append(entry["end"])
        cluster.append(entry)
        cluster_end = max(cluster_end, entry["end"]) if len(cluster) > 1 else entry["end"]
    if cluster:
        close_cluster()


def _tooltip(item: dict) -> str:
    lines = [item["title"], f"{format_time(item['start'])} - {format_time(item['end'])}"]
    if item.get("location"):
        lines.append(f"Location: {item['location']}")
    lines.append(f"Type: {item.get('type', '')}")
    return "\n".join(lines)


def _block(entry: dict, hour: int) -> dict:
    item = entry["item"]
    # Each cell draws only the slice of the item that falls inside its hour.
    top = max(entry["start"], hour) - hour
    bottom = min(entry["end"], hour + 1) - hour
    lanes = entry.get("lanes", 1)
    return {
        "title": item["title"],
        "type": item.get("type", ""),
        "location": item.get("location"),
        "start_label": format_time(item["start"]),
        "end_label": format_time(item["end"]),
        "color": type_color(item.get("type", "")),
        "top_pct": round(top * 100, 2),
        "height_pct": round((bottom - top) * 100, 2),
        "left_pct": round(entry.get("lane", 0) * 100 / lanes, 2),
        "width_pct": round(100 / lanes, 2),
        "z_index": item.get("priority", 0),
        "is_first": entry["start"] >= hour,
        "tooltip": _tooltip(item),
    }


def build_week_grid(items: List[dict], hours: Optional[List[int]] = None) -> dict:
    """
    Lays out schedule items on an hour-by-day grid.

    Returns:
      {
        "days": [{"code": "Mo", "name": "Monday"}, ...],
        "rows": [{"hour": 9, "label": "9 AM",
                  "cells": [{"day": "Mo", "blocks": [...]}, ...]}, ...]
      }
    An item lands in every hour cell it overlaps (start < hour + 1 and end > hour).
    """
    hours = HOURS if hours is None else hours
    by_day = {}
    for day, day_items in group_by_day(items).items():
        timed = _timed(day_items)
        assign_lanes(timed)
        by_day[day] = sorted(timed, key=lambda t: t["order"])

    rows = []
    for hour in hours:
        cells = []
        for day in DAYS:
            blocks = [
                _block(entry, hour)
                for entry in by_day[day]
                if entry["start"] < hour + 1 and entry["end"] > hour
            ]
            cells.append({"day": day, "blocks": blocks})
        rows.append({"hour": hour, "label": hour_label(hour), "cells": cells})

    return {
        "days": [{"code": code, "name": name} for code, name in zip(DAYS, DAY_NAMES)],
        "rows": rows,
    }


def _fmt_delta(delta: float) -> str:
    return f"{delta:+g}hrs"


def workload_rows(data: dict) -> List[dict]:
    rows = []
    for course in data.get("workload_breakdown", []):
        adjustments = course.get("adjustments") or []
        rows.append({
            "course_id": course["course_id"],
            "credits": f"{course.get('credits', 0):g}",
            "base_hours": f"{course.get('base_hours_per_week', 0):.1f}",
            "total_hours": f"{course.get('total_target_hours_per_week', 0):.1f}",
            "adjustments": ", ".join(
                f"{a['reason']}: {_fmt_delta(a['delta_hours'])}" for a in adjustments
            ),
        })
    return rows


def info_sections(data: dict) -> List[dict]:
    """Notes, Assumptions, Tradeoffs, Conflicts, in that order, skipping empty ones."""
    sections = []
    for key, title in (
        ("notes_for_user", "Notes"),
        ("assumptions", "Assumptions"),
        ("tradeoffs", "Tradeoffs"),
    ):
        entries = data.get(key) or []
        if entries:
            sections.append({
                "key": key,
                "title": title,
                "entries": [{"label": None, "text": text} for text in entries],
            })

    conflicts = data.get("conflicts") or []
    if conflicts:
        sections.append({
            "key": "conflicts",
            "title": "Conflicts",
            "entries": [
                {"label": c["item"], "text": f"{c['resolved_by']} - {c['details']}"}
                for c in conflicts
            ],
        })
    return sections


def type_legend(items: List[dict]) -> List[dict]:
    seen = list(dict.fromkeys(item.get("type", "") for item in items))
    return [
        {"type": t, "color": type_color(t), "variant": type_badge_variant(t)}
        for t in seen
    ]


def build_calendar_view(data: dict) -> dict:
    """Everything the results template needs for one coerced schedule."""
    items = data.get("weekly_schedule") or []
    return {
        "has_schedule": bool(items),
        "workload": workload_rows(data),
        "grid": build_week_grid(items) if items else None,
        "legend": type_legend(items),
        "sections": info_sections(data),
    }
