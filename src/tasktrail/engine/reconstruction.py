"""Read-time subject labels for activity log entries.

Entries keep a copy of the task id rather than a live reference, so a
task may be gone by the time its history is read. Labels resolve in this
order:

1. the task's current title, if it still exists;
2. the title captured in the entry's structured summary;
3. a title parsed out of the free-text details (older entries);
4. ``UNKNOWN_TASK_LABEL``.
"""

import re
from typing import Awaitable, Callable, Iterable, Mapping

from tasktrail.models import AuditLogEntry, EntityType, LabeledAuditLogEntry
from tasktrail.observability.metrics import metrics

UNKNOWN_TASK_LABEL = "Unknown Task"

# Tried in order; first match wins. Quotes are dropped only when they wrap
# the whole title.
DETAIL_TITLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'^Deleted task:\s*(?:"(?P<quoted>[^"]*)"|(?P<title>.+?))\s*$', re.DOTALL),
    re.compile(r'^Created task:\s*(?:"(?P<quoted>[^"]*)"|(?P<title>.+?))\s*$', re.DOTALL),
    # Legacy update format: Task "<title>": <changes>
    re.compile(r'^Task "(?P<title>[^"]+)":'),
)

TitleLookup = Callable[[list[int]], Awaitable[Mapping[int, str]]]


def extract_title(details: str | None) -> str | None:
    """Parse a task title out of stored free-text details."""
    if not details:
        return None
    text = details.strip()
    for pattern in DETAIL_TITLE_PATTERNS:
        match = pattern.match(text)
        if match:
            groups = match.groupdict()
            title = (groups.get("quoted") or groups.get("title") or "").strip()
            if title:
                return title
    return None


def _resolve(entry: AuditLogEntry, live_titles: Mapping[int, str]) -> tuple[str, str]:
    """Return (label, source) where source names the step that produced it."""
    live = live_titles.get(entry.entity_id)
    if live is not None:
        return live, "live"
    if entry.summary is not None and entry.summary.title:
        return entry.summary.title, "summary"
    parsed = extract_title(entry.details)
    if parsed:
        return parsed, "details"
    return UNKNOWN_TASK_LABEL, "unknown"


def resolve_label(entry: AuditLogEntry, live_titles: Mapping[int, str]) -> str:
    """Best-effort label for a single Task entry."""
    return _resolve(entry, live_titles)[0]


def task_entity_ids(entries: Iterable[AuditLogEntry]) -> list[int]:
    """Distinct task ids referenced by the entries, in first-seen order."""
    seen: dict[int, None] = {}
    for entry in entries:
        if entry.entity_type == EntityType.TASK:
            seen.setdefault(entry.entity_id, None)
    return list(seen)


async def reconstruct_labels(
    entries: list[AuditLogEntry],
    lookup_titles: TitleLookup,
) -> list[LabeledAuditLogEntry]:
    """
    Attach a ``task_title`` to every Task entry.

    ``lookup_titles`` is called at most once with all referenced ids and
    returns ``{id: current title}`` for the tasks that still exist. The
    input entries are not modified.
    """
    ids = task_entity_ids(entries)
    live_titles: Mapping[int, str] = await lookup_titles(ids) if ids else {}

    labeled = []
    for entry in entries:
        label = None
        if entry.entity_type == EntityType.TASK:
            label, source = _resolve(entry, live_titles)
            metrics.inc_counter(f"activity.labels.{source}")
        labeled.append(
            LabeledAuditLogEntry.model_validate({**entry.model_dump(), "task_title": label})
        )
    return labeled
