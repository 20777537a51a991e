import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.core.clock import Clock, utcnow
from carcheck.data.checklist_catalog import CHECKLIST_SECTIONS, ChecklistSection, get_item, get_section
from carcheck.models.checklist import ChecklistItem
from carcheck.models.enums import ChecklistStatus
from carcheck.models.user import User
from carcheck.services.exceptions import NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionSummary:
    section: str
    total: int
    completed: int
    ok_count: int
    warning_count: int
    issue_count: int


class ChecklistService:
    """
    Per-car checklist records keyed by (car_id, section, item_key).

    Rows are created on first write and updated in place afterwards;
    concurrent writers to the same item are last-writer-wins. No history is
    kept: an upsert overwrites the previous status and comment.
    """

    def __init__(self, db: AsyncSession, now: Clock = utcnow):
        self.db = db
        self.now = now

    @staticmethod
    def _section_or_404(section: str) -> ChecklistSection:
        definition = get_section(section)
        if definition is None:
            raise NotFound(f"Unknown checklist section '{section}'.")
        return definition

    @staticmethod
    def _check_item(section: str, item_key: str) -> None:
        if get_item(section, item_key) is None:
            raise NotFound(f"Unknown checklist item '{section}.{item_key}'.")

    async def _find(self, car_id: int, section: str, item_key: str) -> Optional[ChecklistItem]:
        stmt = select(ChecklistItem).where(
            ChecklistItem.car_id == car_id,
            ChecklistItem.section == section,
            ChecklistItem.item_key == item_key,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get_section_items(self, car_id: int, section: str) -> List[ChecklistItem]:
        self._section_or_404(section)
        stmt = (
            select(ChecklistItem)
            .where(ChecklistItem.car_id == car_id, ChecklistItem.section == section)
            .order_by(ChecklistItem.item_key)
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def all_items(self, car_id: int) -> Dict[str, List[ChecklistItem]]:
        """Every record for a car grouped by section key, sections and items in catalog order."""
        stmt = select(ChecklistItem).where(ChecklistItem.car_id == car_id)
        records: Dict[str, Dict[str, ChecklistItem]] = {}
        for record in (await self.db.execute(stmt)).scalars().all():
            records.setdefault(record.section, {})[record.item_key] = record

        grouped: Dict[str, List[ChecklistItem]] = {}
        for section in CHECKLIST_SECTIONS:
            by_key = records.get(section.key)
            if by_key:
                grouped[section.key] = [by_key[key] for key in section.item_keys if key in by_key]
        return grouped

    async def upsert(
        self,
        car_id: int,
        section: str,
        item_key: str,
        status: ChecklistStatus,
        comment: Optional[str],
        editor: Optional[User],
    ) -> ChecklistItem:
        self._check_item(section, item_key)
        status = ChecklistStatus(status)
        editor_id = editor.id if editor is not None else None

        record = await self._find(car_id, section, item_key)
        if record is None:
            record = ChecklistItem(
                car_id=car_id,
                section=section,
                item_key=item_key,
                status=status,
                comment=comment,
                updated_by=editor_id,
                updated_at=self.now(),
            )
            self.db.add(record)
            try:
                await self.db.commit()
            except IntegrityError:
                # Another writer inserted the same key first; fall through to update it
                await self.db.rollback()
                record = await self._find(car_id, section, item_key)
                if record is None:
                    raise
                await self._apply(record, status, comment, editor_id)
        else:
            await self._apply(record, status, comment, editor_id)

        logger.debug(
            "Checklist item saved",
            extra={"car_id": car_id, "section": section, "item_key": item_key, "status": status.value},
        )
        return record

    async def _apply(
        self,
        record: ChecklistItem,
        status: ChecklistStatus,
        comment: Optional[str],
        editor_id: Optional[int],
    ) -> None:
        record.status = status
        record.comment = comment
        record.updated_by = editor_id
        record.updated_at = self.now()
        await self.db.commit()

    async def clear(self, car_id: int, section: str, item_key: str, editor: Optional[User] = None) -> Optional[ChecklistItem]:
        """Reset the status to unset, keeping the record and its comment."""
        self._check_item(section, item_key)
        record = await self._find(car_id, section, item_key)
        if record is None:
            return None
        await self._apply(record, ChecklistStatus.UNSET, record.comment, editor.id if editor else None)
        return record

    async def section_summary(self, car_id: int, section: str) -> SectionSummary:
        definition = self._section_or_404(section)
        catalog_keys = set(definition.item_keys)
        records = await self.get_section_items(car_id, section)

        counts = {ChecklistStatus.OK: 0, ChecklistStatus.WARNING: 0, ChecklistStatus.ISSUE: 0}
        for record in records:
            if record.item_key in catalog_keys and record.status in counts:
                counts[record.status] += 1

        return SectionSummary(
            section=section,
            total=len(definition.items),
            completed=sum(counts.values()),
            ok_count=counts[ChecklistStatus.OK],
            warning_count=counts[ChecklistStatus.WARNING],
            issue_count=counts[ChecklistStatus.ISSUE],
        )
