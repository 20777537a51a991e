"""
Inspection report aggregation and rendering.

`aggregate` is a read-only fan-in over the checklist catalog and the
stored checklist records of one car. `render_html` turns the resulting
ReportModel into a self-contained, printable HTML document.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.core.clock import Clock, utcnow
from carcheck.data.checklist_catalog import CHECKLIST_SECTIONS, get_item, total_items
from carcheck.models.checklist import ChecklistItem
from carcheck.models.enums import ChecklistStatus
from carcheck.services.car_service import CarService
from carcheck.services.checklist_service import ChecklistService

SEVERITY_ORDER = {
    ChecklistStatus.ISSUE: 0,
    ChecklistStatus.WARNING: 1,
    ChecklistStatus.OK: 2,
    ChecklistStatus.UNSET: 3,
}

STATUS_LABELS = {
    ChecklistStatus.OK: "OK",
    ChecklistStatus.WARNING: "Warning",
    ChecklistStatus.ISSUE: "Issue",
    ChecklistStatus.UNSET: "Not checked",
}

APPROVAL_PARTIES = ("seller", "buyer")


def severity_rank(status: Optional[ChecklistStatus]) -> int:
    """issue < warning < ok < unset; anything unknown sorts with unset."""
    if status is None:
        return SEVERITY_ORDER[ChecklistStatus.UNSET]
    return SEVERITY_ORDER.get(ChecklistStatus(status), SEVERITY_ORDER[ChecklistStatus.UNSET])


def severity_sort_key(record) -> tuple[int, str]:
    """Sort key putting problems first, ties broken by item_key."""
    return severity_rank(record.status), record.item_key


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    # Each share is rounded on its own, so shares need not sum to 100
    return round_half_up(part / whole * 100) if whole > 0 else 0


def humanize_key(item_key: str) -> str:
    return item_key.replace("_", " ").title()


@dataclass
class CarIdentity:
    car_id: int
    registration_number: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None


@dataclass
class ReportItem:
    item_key: str
    title: str
    description: Optional[str]
    status: ChecklistStatus
    comment: Optional[str]
    updated_at: Optional[datetime]

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]


@dataclass
class ReportSection:
    key: str
    title: str
    icon: str
    items: List[ReportItem] = field(default_factory=list)


@dataclass
class ReportStats:
    total_items: int
    total_checked: int
    ok_count: int
    warning_count: int
    issue_count: int
    completed_pct: int
    ok_pct: int
    warning_pct: int
    issue_pct: int

    @property
    def interpretation(self) -> str:
        if self.issue_count > 0:
            return "Issues were found that need attention."
        if self.warning_count > 0:
            return "Some remarks, but no serious problems."
        if self.ok_count > 0:
            return "The checked items are in order."
        return "Inspection in progress."


@dataclass
class ApprovalBlock:
    party: str
    signature: Optional[str] = None
    signed_at: Optional[datetime] = None


@dataclass
class ReportModel:
    car: CarIdentity
    generated_at: datetime
    stats: ReportStats
    sections: List[ReportSection]
    approvals: List[ApprovalBlock]


def compute_stats(sections: List[ReportSection]) -> ReportStats:
    counts = {status: 0 for status in ChecklistStatus}
    for section in sections:
        for item in section.items:
            if get_item(section.key, item.item_key) is not None:
                counts[item.status] += 1

    checked = counts[ChecklistStatus.OK] + counts[ChecklistStatus.WARNING] + counts[ChecklistStatus.ISSUE]
    total = total_items()
    return ReportStats(
        total_items=total,
        total_checked=checked,
        ok_count=counts[ChecklistStatus.OK],
        warning_count=counts[ChecklistStatus.WARNING],
        issue_count=counts[ChecklistStatus.ISSUE],
        completed_pct=percentage(checked, total),
        ok_pct=percentage(counts[ChecklistStatus.OK], checked),
        warning_pct=percentage(counts[ChecklistStatus.WARNING], checked),
        issue_pct=percentage(counts[ChecklistStatus.ISSUE], checked),
    )


def _report_item(section_key: str, record: ChecklistItem) -> ReportItem:
    definition = get_item(section_key, record.item_key)
    return ReportItem(
        item_key=record.item_key,
        title=definition.title if definition else humanize_key(record.item_key),
        description=definition.description if definition else None,
        status=ChecklistStatus(record.status),
        comment=record.comment,
        updated_at=record.updated_at,
    )


class ReportService:
    def __init__(self, db: AsyncSession, now: Clock = utcnow):
        self.db = db
        self.now = now
        self.cars = CarService(db)
        self.checklist = ChecklistService(db, now=now)

    async def aggregate(self, car_id: int) -> ReportModel:
        car = await self.cars.get_car(car_id)
        records_by_section = await self.checklist.all_items(car_id)

        sections = []
        for definition in CHECKLIST_SECTIONS:
            records = sorted(records_by_section.get(definition.key, []), key=severity_sort_key)
            sections.append(
                ReportSection(
                    key=definition.key,
                    title=definition.title,
                    icon=definition.icon,
                    items=[_report_item(definition.key, record) for record in records],
                )
            )

        return ReportModel(
            car=CarIdentity(
                car_id=car.id,
                registration_number=car.registration_number,
                make=car.make,
                model=car.model,
                year=car.year,
            ),
            generated_at=self.now(),
            stats=compute_stats(sections),
            sections=sections,
            approvals=[ApprovalBlock(party=party) for party in APPROVAL_PARTIES],
        )


_templates = Environment(
    loader=PackageLoader("carcheck", "templates"),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render_html(report: ReportModel) -> str:
    template = _templates.get_template("report.html")
    return template.render(report=report)
