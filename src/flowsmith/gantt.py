"""
Gantt chart parser and mutators.

A task is a ``label : token, token, ...`` line. Tokens keep their character
spans in the source line, so mutators rewrite only the tokens that change
and leave the label, spacing and every other line untouched.

Only date-only ISO dates (``YYYY-MM-DD``) and whole-day durations are
understood. Sub-day ``dateFormat`` charts parse, but their timestamps are not
recognised as dates.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Sequence, Union

from .schedule import resolve_schedule
from .textops import front_matter_end, join_lines, splice, split_lines

logger = logging.getLogger(__name__)

DateLike = Union[date, str]

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DURATION_PATTERN = re.compile(r"^(\d+)([dwmy])$", re.IGNORECASE)
TASK_PATTERN = re.compile(r"^(\s*)([^:\s][^:]*?)\s*:\s*(.+?)\s*$")
SECTION_PATTERN = re.compile(r"^(\s*)section\s+(.+?)\s*$", re.IGNORECASE)
METADATA_PATTERN = re.compile(
    r"^%%\s*(assignee|progress|link|notes):\s*(.*?)\s*$", re.IGNORECASE
)
SUB_DAY_FORMAT_PATTERN = re.compile(r"HH|mm|ss")

UNIT_DAYS = {"d": 1, "w": 7, "m": 30, "y": 365}
STATUS_FLAGS = ("done", "active", "crit")
TYPE_KEYWORDS = ("milestone", "vert")
METADATA_KEYS = ("assignee", "progress", "link", "notes")

DIRECTIVE_PREFIXES = (
    "gantt",
    "title ",
    "dateFormat ",
    "axisFormat ",
    "tickInterval ",
    "todayMarker ",
    "excludes ",
    "includes ",
    "weekend ",
    "weekday ",
    "displayMode ",
    "inclusiveEndDates",
    "topAxis",
    "accTitle",
    "accDescr",
    "click ",
    "%%",
)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse ``YYYY-MM-DD``; None for anything else, including 2026-02-30."""
    value = (value or "").strip()
    if not ISO_DATE_PATTERN.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.debug("Invalid calendar date %r", value)
        return None


def duration_to_days(token: Optional[str]) -> Optional[int]:
    """Convert ``3d``/``2w``/``1m``/``1y`` to whole days (m = 30, y = 365)."""
    match = DURATION_PATTERN.match((token or "").strip())
    if not match:
        return None
    return int(match.group(1)) * UNIT_DAYS[match.group(2).lower()]


def is_duration(token: Optional[str]) -> bool:
    return duration_to_days(token) is not None


def format_date(value: DateLike) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _is_keyword(token: str) -> bool:
    lower = token.lower()
    return lower in STATUS_FLAGS or lower in TYPE_KEYWORDS


def _is_reference(token: str) -> bool:
    return token.lower().startswith(("after ", "until "))


def _is_directive(stripped: str) -> bool:
    return not stripped or stripped.startswith(DIRECTIVE_PREFIXES)


@dataclass
class GanttToken:
    """One comma-separated token and its [start, end) span in the line."""

    text: str
    start: int
    end: int


@dataclass
class GanttDirectives:
    title: str = ""
    date_format: str = "YYYY-MM-DD"
    axis_format: str = ""
    tick_interval: str = ""
    today_marker: str = "on"
    excludes: List[str] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    display_mode: str = ""
    weekend: str = ""
    inclusive_end_dates: bool = False

    @property
    def sub_day(self) -> bool:
        return SUB_DAY_FORMAT_PATTERN.search(self.date_format) is not None


@dataclass
class GanttTask:
    """
    A parsed task line.

    Token indices (``date_index``, ``duration_index``, ...) point into
    ``tokens`` and are -1 when absent.

    Attributes:
        line: Line index of the task.
        label: Task label, the text before the colon.
        id_token: Optional short id, the token right before the start date or
            the ``after`` token.
        status: done / active / crit flags, lower-cased.
        start_date: Explicit start date.
        end_date: Explicit end date (second ISO date).
        duration_days: Whole days from the duration token, or from the
            explicit start and end dates.
        after_deps: References from ``after a b``.
        until_dep: Reference from ``until x``.
        metadata_end: Last line of the ``%% key: value`` metadata block
            (``line`` when there is none).
    """

    line: int
    label: str
    indent: str = ""
    label_start: int = 0
    label_end: int = 0
    tokens: List[GanttToken] = field(default_factory=list)
    id_token: str = ""
    status: List[str] = field(default_factory=list)
    status_indices: List[int] = field(default_factory=list)
    is_milestone: bool = False
    is_vert: bool = False
    date_index: int = -1
    start_date: Optional[date] = None
    end_date_index: int = -1
    end_date: Optional[date] = None
    duration_index: int = -1
    duration_token: str = ""
    duration_days: Optional[int] = None
    after_index: int = -1
    after_deps: List[str] = field(default_factory=list)
    until_index: int = -1
    until_dep: str = ""
    section: str = ""
    assignee: str = ""
    progress: Optional[int] = None
    link: str = ""
    notes: str = ""
    metadata_end: int = -1

    @property
    def key(self) -> str:
        """Graph key: lower-cased id token, else lower-cased label."""
        return (self.id_token or self.label).lower()

    @property
    def has_explicit_date(self) -> bool:
        return self.start_date is not None

    def token_texts(self) -> List[str]:
        return [token.text for token in self.tokens]


@dataclass
class GanttSection:
    name: str
    indent: str = ""
    line: int = 0


@dataclass
class GanttChart:
    directives: GanttDirectives
    tasks: List[GanttTask] = field(default_factory=list)
    sections: List[GanttSection] = field(default_factory=list)

    def find(self, ref: str) -> Optional[GanttTask]:
        return find_task(self.tasks, ref)


# ----------------------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------------------


def parse_gantt_directives(text: str) -> GanttDirectives:
    """Read chart-level directives. Later lines override earlier ones."""
    directives = GanttDirectives()
    for line in split_lines(text):
        stripped = line.strip()
        keyword, _, value = stripped.partition(" ")
        value = value.strip()
        if keyword == "title":
            directives.title = value
        elif keyword == "dateFormat":
            directives.date_format = value
        elif keyword == "axisFormat":
            directives.axis_format = value
        elif keyword == "tickInterval":
            directives.tick_interval = value
        elif keyword == "todayMarker":
            directives.today_marker = value
        elif keyword == "displayMode":
            directives.display_mode = value
        elif keyword in ("weekend", "weekday"):
            directives.weekend = value.lower()
        elif keyword == "inclusiveEndDates":
            directives.inclusive_end_dates = True
        elif keyword in ("excludes", "includes"):
            values = [v.strip().lower() for v in value.split(",") if v.strip()]
            getattr(directives, keyword).extend(values)
    if directives.sub_day:
        logger.debug(
            "Sub-day dateFormat %r: timestamps are not read as dates",
            directives.date_format,
        )
    return directives


def _split_tokens(token_part: str, offset: int) -> List[GanttToken]:
    tokens = []
    pos = 0
    for piece in token_part.split(","):
        stripped = piece.strip()
        if stripped:
            start = offset + pos + len(piece) - len(piece.lstrip())
            tokens.append(GanttToken(stripped, start, start + len(stripped)))
        pos += len(piece) + 1
    return tokens


def _parse_task_line(raw: str, line_idx: int, section: str) -> Optional[GanttTask]:
    match = TASK_PATTERN.match(raw)
    if not match:
        return None
    tokens = _split_tokens(match.group(3), match.start(3))
    if not tokens:
        return None

    task = GanttTask(
        line=line_idx,
        label=match.group(2).strip(),
        indent=match.group(1),
        label_start=match.start(2),
        label_end=match.end(2),
        tokens=tokens,
        section=section,
        metadata_end=line_idx,
    )
    texts = task.token_texts()

    # Leading keywords
    for i, token in enumerate(texts):
        lower = token.lower()
        if lower in STATUS_FLAGS:
            task.status.append(lower)
            task.status_indices.append(i)
        elif lower == "milestone":
            task.is_milestone = True
        elif lower == "vert":
            task.is_vert = True
        else:
            break

    for i, token in enumerate(texts):
        lower = token.lower()
        if task.after_index < 0 and lower.startswith("after "):
            task.after_index = i
            task.after_deps = token[6:].split()
        elif task.until_index < 0 and lower.startswith("until "):
            task.until_index = i
            task.until_dep = token[6:].strip()

    dates = [(i, parse_iso_date(token)) for i, token in enumerate(texts)]
    dates = [(i, value) for i, value in dates if value is not None]
    if dates:
        task.date_index, task.start_date = dates[0]
    if len(dates) > 1:
        task.end_date_index, task.end_date = dates[1]

    def usable_id(index: int) -> bool:
        if index < 0:
            return False
        token = texts[index]
        return not (
            parse_iso_date(token)
            or is_duration(token)
            or _is_keyword(token)
            or _is_reference(token)
        )

    if task.date_index > 0 and usable_id(task.date_index - 1):
        task.id_token = texts[task.date_index - 1]
    elif task.after_index > 0 and usable_id(task.after_index - 1):
        task.id_token = texts[task.after_index - 1]

    next_index = task.date_index + 1
    if (
        task.date_index >= 0
        and task.end_date_index != next_index
        and next_index < len(texts)
        and is_duration(texts[next_index])
    ):
        task.duration_index = next_index
    elif task.after_index >= 0:
        following = task.after_index + 1
        if following < len(texts) and is_duration(texts[following]):
            task.duration_index = following
    if task.duration_index < 0 and task.date_index < 0 and task.after_index < 0:
        if is_duration(texts[-1]):
            task.duration_index = len(texts) - 1

    if task.duration_index >= 0:
        task.duration_token = texts[task.duration_index]
        task.duration_days = duration_to_days(task.duration_token)
    elif task.start_date and task.end_date:
        task.duration_days = (task.end_date - task.start_date).days
    return task


def _attach_metadata(task: GanttTask, lines: List[str]) -> None:
    i = task.line + 1
    while i < len(lines):
        match = METADATA_PATTERN.match(lines[i].strip())
        if not match:
            break
        key, value = match.group(1).lower(), match.group(2)
        if key == "progress":
            if value.isdigit() and 0 <= int(value) <= 100:
                task.progress = int(value)
        else:
            setattr(task, key, value)
        task.metadata_end = i
        i += 1


def parse_gantt_tasks(text: str) -> List[GanttTask]:
    """
    Parse every task line.

    Directive, section and comment lines are skipped. ``%% key: value``
    comments right below a task attach to it as assignee, progress, link or
    notes.
    """
    lines = split_lines(text)
    tasks: List[GanttTask] = []
    section = ""
    for i in range(front_matter_end(lines), len(lines)):
        stripped = lines[i].strip()
        match = SECTION_PATTERN.match(lines[i])
        if match:
            section = match.group(2)
            continue
        if _is_directive(stripped):
            continue
        task = _parse_task_line(lines[i], i, section)
        if task is None:
            logger.debug("Skipping unrecognised gantt line %d", i)
            continue
        _attach_metadata(task, lines)
        tasks.append(task)
    return tasks


def get_sections(text: str) -> List[GanttSection]:
    sections = []
    for i, line in enumerate(split_lines(text)):
        match = SECTION_PATTERN.match(line)
        if match:
            sections.append(
                GanttSection(name=match.group(2), indent=match.group(1), line=i)
            )
    return sections


def parse_gantt(text: str) -> GanttChart:
    return GanttChart(
        directives=parse_gantt_directives(text),
        tasks=parse_gantt_tasks(text),
        sections=get_sections(text),
    )


def find_task(tasks: Sequence[GanttTask], ref: str) -> Optional[GanttTask]:
    """
    Find a task by label (exact, then case-insensitive), then by id token.
    """
    clean = (ref or "").strip()
    if not clean:
        return None
    lower = clean.lower()
    for matches in (
        lambda t: t.label == clean,
        lambda t: t.label.lower() == lower,
        lambda t: t.id_token.lower() == lower,
    ):
        for task in tasks:
            if matches(task):
                return task
    return None


def find_dependent_tasks(
    tasks: Sequence[GanttTask], task: GanttTask
) -> List[GanttTask]:
    """Tasks whose ``after`` list names task by id or label."""
    keys = {task.label.lower()}
    if task.id_token:
        keys.add(task.id_token.lower())
    return [
        other
        for other in tasks
        if other is not task and any(dep.lower() in keys for dep in other.after_deps)
    ]


# ----------------------------------------------------------------------------
# Mutators
# ----------------------------------------------------------------------------


def _write_tokens(line: str, task: GanttTask, texts: List[str]) -> str:
    """
    Rewrite the token region of a task line.

    When the token count is unchanged only the differing tokens are spliced;
    otherwise the span from the first to the last token is rebuilt.
    """
    old = task.tokens
    if len(texts) == len(old):
        for token, new in reversed(list(zip(old, texts))):
            if token.text != new:
                line = splice(line, token.start, token.end, new)
        return line
    return splice(line, old[0].start, old[-1].end, ", ".join(texts))


def _rewrite(
    text: str, task: GanttTask, texts: List[str], label: Optional[str] = None
) -> str:
    lines = split_lines(text)
    line = _write_tokens(lines[task.line], task, texts)
    if label is not None and label != task.label:
        line = splice(line, task.label_start, task.label_end, label)
    if line == lines[task.line]:
        return text
    lines[task.line] = line
    return join_lines(lines)


def _locate(text: str, ref: str, operation: str) -> Optional[GanttTask]:
    task = find_task(parse_gantt_tasks(text), ref)
    if task is None:
        logger.debug("Task %r not found; %s is a no-op", ref, operation)
    return task


def update_task(
    text: str,
    ref: str,
    label: Optional[str] = None,
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    duration: Optional[str] = None,
) -> str:
    """
    Change a task's label, start, end or duration.

    A new start date replaces the explicit date, or the ``after`` token when
    the task had none. A new end date replaces the end date or the duration.
    A new duration replaces the duration or the end date.

    Args:
        text: Gantt source.
        ref: Task label or id token.
        label: New label.
        start_date: New start date (``date`` or ISO string).
        end_date: New end date.
        duration: New duration token, e.g. ``"3d"``.

    Returns:
        Updated text, or the input when the task is not found.
    """
    task = _locate(text, ref, "update_task")
    if task is None:
        return text
    texts = task.token_texts()

    if start_date is not None:
        new_start = format_date(start_date)
        if task.date_index >= 0:
            texts[task.date_index] = new_start
        elif task.after_index >= 0:
            texts[task.after_index] = new_start
        else:
            at = task.duration_index if task.duration_index >= 0 else len(texts)
            texts.insert(at, new_start)

    if end_date is not None:
        new_end = format_date(end_date)
        if task.end_date_index >= 0:
            texts[task.end_date_index] = new_end
        elif task.duration_index >= 0:
            texts[task.duration_index] = new_end
        elif task.date_index >= 0:
            texts.insert(task.date_index + 1, new_end)
        else:
            texts.append(new_end)
    elif duration:
        new_duration = duration.strip()
        if task.duration_index >= 0:
            texts[task.duration_index] = new_duration
        elif task.end_date_index >= 0:
            texts[task.end_date_index] = new_duration
        elif task.date_index >= 0:
            texts.insert(task.date_index + 1, new_duration)
        else:
            texts.append(new_duration)

    new_label = label.strip() if label and label.strip() else None
    return _rewrite(text, task, texts, new_label)


def _shifted_texts(task: GanttTask, days: int) -> List[str]:
    texts = task.token_texts()
    delta = timedelta(days=days)
    texts[task.date_index] = (task.start_date + delta).isoformat()
    if task.end_date is not None:
        texts[task.end_date_index] = (task.end_date + delta).isoformat()
    return texts


def shift_task(text: str, ref: str, days: int) -> str:
    """Move a task's explicit start (and end) date by a number of days."""
    task = _locate(text, ref, "shift_task")
    if task is None or days == 0:
        return text
    if task.start_date is None:
        logger.debug("Task %r has no explicit date to shift", ref)
        return text
    return _rewrite(text, task, _shifted_texts(task, days))


def _dependency_texts(task: GanttTask, deps: Sequence[str]) -> List[str]:
    texts = task.token_texts()
    after = "after " + " ".join(deps) if deps else None
    if task.after_index >= 0:
        if after:
            texts[task.after_index] = after
        else:
            del texts[task.after_index]
    elif after:
        if task.date_index >= 0:
            texts[task.date_index] = after
        else:
            at = task.duration_index if task.duration_index >= 0 else len(texts)
            texts.insert(at, after)
    return texts


def set_task_dependencies(text: str, ref: str, deps: Sequence[str]) -> str:
    """
    Replace a task's ``after`` list. An explicit start date is replaced by
    the new ``after`` token; an empty list removes the token.
    """
    task = _locate(text, ref, "set_task_dependencies")
    if task is None:
        return text
    deps = [dep.strip() for dep in deps if dep and dep.strip()]
    if not deps and task.after_index < 0:
        return text
    texts = _dependency_texts(task, deps)
    if not texts:
        logger.debug("Removing the only token of %r would drop the task", ref)
        return text
    return _rewrite(text, task, texts)


def delete_task(text: str, ref: str, detach_dependents: bool = False) -> str:
    """
    Delete a task line and its metadata comments.

    With ``detach_dependents``, every task that waits on the deleted one has
    the reference removed. A dependent left without any reference or date
    gets its resolved start date written in place of the ``after`` token, so
    tasks further down the chain keep their dates.
    """
    tasks = parse_gantt_tasks(text)
    task = find_task(tasks, ref)
    if task is None:
        logger.debug("Task %r not found; delete_task is a no-op", ref)
        return text

    lines = split_lines(text)
    if detach_dependents:
        keys = {task.label.lower()}
        if task.id_token:
            keys.add(task.id_token.lower())
        resolution = resolve_schedule(tasks)
        for dependent in find_dependent_tasks(tasks, task):
            remaining = [d for d in dependent.after_deps if d.lower() not in keys]
            texts = _dependency_texts(dependent, remaining)
            if not remaining and dependent.start_date is None:
                scheduled = resolution.for_task(dependent)
                if scheduled is not None:
                    texts = dependent.token_texts()
                    texts[dependent.after_index] = scheduled.start.isoformat()
                else:
                    logger.debug("'%s' loses its only anchor", dependent.label)
            if texts:
                lines[dependent.line] = _write_tokens(
                    lines[dependent.line], dependent, texts
                )

    del lines[task.line : task.metadata_end + 1]
    return join_lines(lines)


def insert_task_after(
    text: str,
    ref: str,
    label: str = "New task",
    status: Sequence[str] = (),
    id_token: str = "",
    start_date: Optional[DateLike] = None,
    end_date: Optional[DateLike] = None,
    duration: str = "",
    assignee: str = "",
    notes: str = "",
    link: str = "",
) -> str:
    """
    Insert a new task below ref (after its metadata comments).

    Without any scheduling token the new task follows ref: ``after <id>, 1d``
    when ref has an id token, else just ``1d``.
    """
    anchor = _locate(text, ref, "insert_task_after")
    if anchor is None:
        return text

    tokens = [flag.lower() for flag in status if flag.lower() in STATUS_FLAGS]
    if id_token.strip():
        tokens.append(id_token.strip())
    scheduling = []
    if start_date is not None:
        scheduling.append(format_date(start_date))
    if end_date is not None:
        scheduling.append(format_date(end_date))
    elif duration.strip():
        scheduling.append(duration.strip())
    if not scheduling:
        scheduling = [f"after {anchor.id_token}", "1d"] if anchor.id_token else ["1d"]
    tokens.extend(scheduling)

    indent = anchor.indent
    new_lines = [f"{indent}{label.strip() or 'New task'} :{', '.join(tokens)}"]
    for key, value in (("assignee", assignee), ("notes", notes), ("link", link)):
        if value.strip():
            new_lines.append(f"{indent}%% {key}: {value.strip()}")

    lines = split_lines(text)
    at = anchor.metadata_end + 1
    lines[at:at] = new_lines
    return join_lines(lines)


def toggle_task_status(text: str, ref: str, flag: str) -> str:
    """Add a done/active/crit flag to the front of the tokens, or remove it."""
    flag = (flag or "").strip().lower()
    if flag not in STATUS_FLAGS:
        logger.debug("Unknown status flag %r", flag)
        return text
    task = _locate(text, ref, "toggle_task_status")
    if task is None:
        return text
    texts = task.token_texts()
    if flag in task.status:
        del texts[task.status_indices[task.status.index(flag)]]
    else:
        texts.insert(0, flag)
    if not texts:
        return text
    return _rewrite(text, task, texts)


def set_task_milestone(text: str, ref: str, milestone: bool = True) -> str:
    task = _locate(text, ref, "set_task_milestone")
    if task is None:
        return text
    texts = task.token_texts()
    lowered = [token.lower() for token in texts]
    if milestone and "milestone" not in lowered:
        texts.insert(0, "milestone")
    elif not milestone and "milestone" in lowered:
        del texts[lowered.index("milestone")]
    else:
        return text
    if not texts:
        return text
    return _rewrite(text, task, texts)


def clear_task_status(text: str, ref: str) -> str:
    task = _locate(text, ref, "clear_task_status")
    if task is None or not task.status_indices:
        return text
    texts = task.token_texts()
    for index in reversed(task.status_indices):
        del texts[index]
    if not texts:
        return text
    return _rewrite(text, task, texts)


def set_task_metadata(
    text: str, ref: str, key: str, value: Union[str, int, float, None]
) -> str:
    """
    Write, replace or remove a ``%% key: value`` comment below a task.

    Progress is rounded and clamped to 0-100. An empty value removes the
    comment.
    """
    key = (key or "").strip().lower()
    if key not in METADATA_KEYS:
        logger.debug("Unknown metadata key %r", key)
        return text
    task = _locate(text, ref, "set_task_metadata")
    if task is None:
        return text

    if key == "progress" and value not in (None, ""):
        try:
            clean = str(max(0, min(100, round(float(value)))))
        except (TypeError, ValueError):
            logger.debug("Invalid progress value %r", value)
            return text
    else:
        clean = "" if value is None else str(value).strip()

    lines = split_lines(text)
    existing = None
    for i in range(task.line + 1, task.metadata_end + 1):
        match = METADATA_PATTERN.match(lines[i].strip())
        if match and match.group(1).lower() == key:
            existing = i
            break

    comment = f"{task.indent}%% {key}: {clean}"
    if clean and existing is not None:
        lines[existing] = comment
    elif clean:
        lines.insert(task.metadata_end + 1, comment)
    elif existing is not None:
        del lines[existing]
    else:
        return text
    return join_lines(lines)


def add_section(text: str, name: str) -> str:
    """Append ``section name`` unless a section with that name exists."""
    name = (name or "").strip()
    if not name:
        return text
    sections = get_sections(text)
    if any(section.name.lower() == name.lower() for section in sections):
        return text
    indent = sections[0].indent if sections else ""
    lines = split_lines(text)
    if lines and lines[-1].strip():
        lines.append("")
    lines.append(f"{indent}section {name}")
    return join_lines(lines)


def rename_section(text: str, current: str, new_name: str) -> str:
    """Rename every section header matching current (case-insensitive)."""
    source = (current or "").strip()
    target = (new_name or "").strip()
    if not source or not target or source == target:
        return text
    lines = split_lines(text)
    changed = False
    for section in get_sections(text):
        if section.name.lower() == source.lower():
            lines[section.line] = f"{section.indent}section {target}"
            changed = True
    return join_lines(lines) if changed else text


def move_task_to_section(text: str, ref: str, section: str) -> str:
    """
    Move a task block (task line plus metadata comments) to the end of
    another section. An empty section name moves it above the first section
    header; a missing section is created at the end of the chart.
    """
    task = _locate(text, ref, "move_task_to_section")
    if task is None:
        return text
    target = (section or "").strip()
    if target == task.section.strip():
        return text

    lines = split_lines(text)
    block = lines[task.line : task.metadata_end + 1]
    del lines[task.line : task.metadata_end + 1]
    remaining = join_lines(lines)
    sections = get_sections(remaining)

    if not target:
        at = sections[0].line if sections else len(lines)
        lines[at:at] = block
        return join_lines(lines)

    for position, header in enumerate(sections):
        if header.name.lower() != target.lower():
            continue
        at = sections[position + 1].line if position + 1 < len(sections) else len(lines)
        # Blank separator lines stay below the moved block.
        while at - 1 > header.line and not lines[at - 1].strip():
            at -= 1
        lines[at:at] = block
        return join_lines(lines)

    if lines and lines[-1].strip():
        lines.append("")
    indent = sections[0].indent if sections else ""
    lines.append(f"{indent}section {target}")
    lines.extend(block)
    return join_lines(lines)


def auto_adjust_dates(text: str, target: DateLike) -> str:
    """
    Shift every explicit date so the earliest start falls on target.

    Tasks scheduled with ``after`` follow automatically.
    """
    target_date = target if isinstance(target, date) else parse_iso_date(target)
    if target_date is None:
        logger.debug("Invalid target date %r", target)
        return text
    explicit = [task for task in parse_gantt_tasks(text) if task.start_date]
    if not explicit:
        return text
    days = (target_date - min(task.start_date for task in explicit)).days
    if days == 0:
        return text
    lines = split_lines(text)
    for task in explicit:
        lines[task.line] = _write_tokens(
            lines[task.line], task, _shifted_texts(task, days)
        )
    return join_lines(lines)

