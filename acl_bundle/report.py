"""
ACL 'diff' report rendering.

A report is a write-only text payload rendered from a comparison result
(device id -> Diff) through an explicit ReportTemplate. The comparison itself
is computed elsewhere; records are rendered with str().
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple


@dataclass
class Diff:
    unchanged: List[Any] = field(default_factory=list)
    updated: List[Any] = field(default_factory=list)
    added: List[Any] = field(default_factory=list)
    deleted: List[Any] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Mapping[str, Iterable[Any]]) -> "Diff":
        return cls(
            unchanged=list(d.get("unchanged") or []),
            updated=list(d.get("updated") or []),
            added=list(d.get("added") or []),
            deleted=list(d.get("deleted") or []),
        )


@dataclass(frozen=True)
class ReportTemplate:
    """
    header is formatted with {datetime}; device with {device}. sections lists
    (Diff attribute, label) pairs in output order; empty sections are skipped.
    """
    header: str = "ACL DIFF REPORT {datetime}"
    device: str = "  DEVICE {device}"
    sections: Tuple[Tuple[str, str], ...] = ()


# load-acl: what changed on the controllers
LOAD_TEMPLATE = ReportTemplate(
    sections=(
        ("unchanged", "Unchanged:"),
        ("updated", "Updated:"),
        ("added", "Added:"),
        ("deleted", "Deleted:"),
    ),
)

# compare-acl: how the controllers differ from the authoritative ACL
COMPARE_TEMPLATE = ReportTemplate(
    sections=(
        ("updated", "Incorrect:"),
        ("added", "Missing:"),
        ("deleted", "Unexpected:"),
    ),
)

TEMPLATES = {"load": LOAD_TEMPLATE, "compare": COMPARE_TEMPLATE}

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def report_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return now.strftime("acl-%Y-%m-%dT%H%M%S.rpt")


def _device_key(device):
    try:
        return (0, int(device))
    except (TypeError, ValueError):
        return (1, str(device))


def render(diffs: Mapping[Any, Diff], template: ReportTemplate = COMPARE_TEMPLATE,
           now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    width = max([len(label) for _, label in template.sections] or [0]) + 1

    lines = [template.header.format(datetime=now.strftime(DATETIME_FORMAT)), ""]
    for device in sorted(diffs, key=_device_key):
        diff = diffs[device]
        lines.append(template.device.format(device=device))
        for attr, label in template.sections:
            records = getattr(diff, attr)
            if not records:
                continue
            indent = " " * (4 + width)
            lines.append(f"    {label:<{width}}{records[0]}")
            lines.extend(f"{indent}{r}" for r in records[1:])
        lines.append("")

    return "\n".join(lines)


def write_report(diffs: Mapping[Any, Diff], workdir: str, template: ReportTemplate = LOAD_TEMPLATE,
                 now: Optional[datetime] = None) -> Path:
    now = now or datetime.now()
    path = Path(workdir) / report_filename(now)
    path.write_text(render(diffs, template, now), encoding="utf-8")
    return path
