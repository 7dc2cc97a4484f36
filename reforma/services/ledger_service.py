from __future__ import annotations

import logging
import math

from reforma.errors import InvalidInput, ReferenceIntegrityError
from reforma.models import to_centavos
from reforma.models.bill import Bill, BillLineItem, BillStatus
from reforma.models.contract import ContractLineItem
from reforma.models.estimate import LineDeviation
from reforma.models.extraction import BillExtraction, ContractExtraction
from reforma.models.project import Project
from reforma.repositories.base import BillRepository, ContractLineItemRepository, ProjectRepository

logger = logging.getLogger(__name__)


def _check_amount(value: int, what: str) -> None:
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidInput(f"{what} must be a finite number")
    if value < 0:
        raise InvalidInput(f"{what} must not be negative (got {value})")


def compute_deviation(line_items: list[ContractLineItem], bills: list[Bill]) -> list[LineDeviation]:
    """Budget vs billed per contract line item, in ``sort_order``.

    Only bill line items mapped to a contract line item count towards that
    item; unmapped amounts are reported by :func:`unmapped_billed`.
    """
    billed_by_item: dict[int, int] = {}
    for bill in bills:
        for bli in bill.line_items:
            if bli.contract_line_item_id is not None:
                billed_by_item[bli.contract_line_item_id] = (
                    billed_by_item.get(bli.contract_line_item_id, 0) + bli.amount
                )

    result: list[LineDeviation] = []
    for position, item in enumerate(line_items):
        _check_amount(item.budgeted_amount, "budgeted_amount")
        billed = billed_by_item.get(item.id, 0) if item.id is not None else 0
        deviation = billed - item.budgeted_amount
        pct = deviation / item.budgeted_amount * 100 if item.budgeted_amount > 0 else 0.0
        result.append(
            LineDeviation(
                contract_line_item_id=item.id,
                description=item.description,
                category=item.category,
                budgeted=item.budgeted_amount,
                billed=billed,
                deviation=deviation,
                deviation_pct=pct,
                sort_order=item.sort_order if item.sort_order is not None else position,
            )
        )
    result.sort(key=lambda d: d.sort_order)
    return result


def total_budget(project: Project, line_items: list[ContractLineItem]) -> int:
    """Sum of line item budgets, or the flat contract amount when there are none."""
    if line_items:
        return sum(item.budgeted_amount for item in line_items)
    return project.contract_amount


def total_billed(bills: list[Bill]) -> int:
    return sum(bill.billed_amount for bill in bills)


def unmapped_billed(bills: list[Bill]) -> int:
    """Billed amount that belongs to no contract line item."""
    return sum(bli.amount for bill in bills for bli in bill.line_items if bli.contract_line_item_id is None)


def project_deviation_pct(project: Project, bills: list[Bill]) -> float:
    """Billed vs flat contract amount for a whole project, in percent."""
    if project.contract_amount <= 0:
        return 0.0
    billed = total_billed([b for b in bills if b.project_id == project.id])
    return (billed - project.contract_amount) / project.contract_amount * 100


class LedgerService:
    def __init__(
        self,
        project_repo: ProjectRepository,
        line_item_repo: ContractLineItemRepository,
        bill_repo: BillRepository,
    ) -> None:
        self.project_repo = project_repo
        self.line_item_repo = line_item_repo
        self.bill_repo = bill_repo

    def create_project(self, project: Project) -> Project:
        result = self.project_repo.create(project)
        logger.info("Project created: id=%s, name=%s", result.id, result.name)
        return result

    def list_projects(self) -> list[Project]:
        result = self.project_repo.list_all()
        logger.debug("Listed %d projects", len(result))
        return result

    def get_project(self, project_id: int) -> Project | None:
        result = self.project_repo.get_by_id(project_id)
        logger.debug("get_project id=%s found=%s", project_id, result is not None)
        return result

    def _get_project(self, project_id: int) -> Project:
        project = self.project_repo.get_by_id(project_id)
        if project is None:
            logger.warning("Project %s not found", project_id)
            raise ValueError("Project not found")
        return project

    def add_contract_line_items(self, project_id: int, items: list[ContractLineItem]) -> list[ContractLineItem]:
        for item in items:
            _check_amount(item.budgeted_amount, "budgeted_amount")
        prepared = [
            item.model_copy(
                update={
                    "project_id": project_id,
                    "sort_order": item.sort_order if item.sort_order is not None else i,
                }
            )
            for i, item in enumerate(items)
        ]
        result = self.line_item_repo.create_many(project_id, prepared)
        logger.info("Added %d contract line items to project %s", len(result), project_id)
        return result

    def list_contract_line_items(self, project_id: int) -> list[ContractLineItem]:
        return self.line_item_repo.list_by_project(project_id)

    def _check_mapping(self, project_id: int, items: list[BillLineItem]) -> None:
        valid_ids = {li.id for li in self.line_item_repo.list_by_project(project_id)}
        for item in items:
            if item.contract_line_item_id is not None and item.contract_line_item_id not in valid_ids:
                logger.warning(
                    "Rejected bill line item '%s': contract line item %s is not part of project %s",
                    item.description,
                    item.contract_line_item_id,
                    project_id,
                )
                raise ReferenceIntegrityError(
                    f"Contract line item {item.contract_line_item_id} does not belong to project {project_id}"
                )

    def create_bill(self, bill: Bill) -> Bill:
        for item in bill.line_items:
            _check_amount(item.amount, "amount")
        self._check_mapping(bill.project_id, bill.line_items)
        result = self.bill_repo.create(bill)
        logger.info(
            "Bill created: id=%s, project=%s, total=%d, items=%d",
            result.id,
            result.project_id,
            result.total_amount,
            len(result.line_items),
        )
        return result

    def record_bill_line_items(self, bill_id: int, items: list[BillLineItem]) -> list[BillLineItem]:
        bill = self.bill_repo.get_by_id(bill_id)
        if bill is None:
            logger.warning("Bill %s not found", bill_id)
            raise ValueError("Bill not found")
        for item in items:
            _check_amount(item.amount, "amount")
        self._check_mapping(bill.project_id, items)
        result = self.bill_repo.add_line_items(bill_id, items)
        logger.info("Recorded %d line items on bill %s", len(result), bill_id)
        return result

    def list_bills(self, project_id: int) -> list[Bill]:
        result = self.bill_repo.list_by_project(project_id)
        logger.debug("Listed %d bills for project=%s", len(result), project_id)
        return result

    def compute_deviation(self, project_id: int) -> list[LineDeviation]:
        line_items = self.line_item_repo.list_by_project(project_id)
        bills = self.bill_repo.list_by_project(project_id)
        return compute_deviation(line_items, bills)

    def save_contract_extraction(self, project_id: int, extraction: ContractExtraction) -> list[ContractLineItem]:
        """Persist an extracted contract: line items, plus the contract total when the project has none."""
        project = self._get_project(project_id)
        updates: dict = {}
        if not project.contract_amount and extraction.total_amount:
            updates["contract_amount"] = to_centavos(extraction.total_amount)
        if not project.contractor_name and extraction.contractor_name:
            updates["contractor_name"] = extraction.contractor_name
        if updates:
            self.project_repo.update(project.model_copy(update=updates))
            logger.info("Project %s updated from contract extraction: %s", project_id, sorted(updates))

        items = [
            ContractLineItem(
                description=item.description,
                category=item.category,
                budgeted_amount=to_centavos(item.amount),
            )
            for item in extraction.line_items
        ]
        if not items:
            return []
        return self.add_contract_line_items(project_id, items)

    def save_bill_extraction(
        self,
        project_id: int,
        extraction: BillExtraction,
        *,
        total_amount: int | None = None,
        status: BillStatus = BillStatus.PENDING,
    ) -> Bill:
        """Create a bill from an extraction result handed in by the caller."""
        line_items = [
            BillLineItem(
                description=item.description,
                amount=to_centavos(item.amount),
                contract_line_item_id=item.contract_line_item_id,
                is_deviation=item.is_deviation,
                deviation_reason=item.deviation_reason,
                sort_order=i,
            )
            for i, item in enumerate(extraction.line_items)
        ]
        bill = Bill(
            project_id=project_id,
            bill_number=extraction.bill_number,
            contractor_name=extraction.contractor_name,
            issue_date=extraction.issue_date,
            due_date=extraction.due_date,
            total_amount=total_amount if total_amount is not None else to_centavos(extraction.total_amount),
            status=status,
            notes=extraction.notes or "",
            line_items=line_items,
        )
        return self.create_bill(bill)
