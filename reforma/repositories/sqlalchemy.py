from __future__ import annotations

from datetime import datetime

from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from ulid import ULID

from reforma.constants import SP_TZ
from reforma.models.bill import Bill, BillLineItem, BillStatus
from reforma.models.contract import ContractLineItem
from reforma.models.mortgage import MortgageLoan
from reforma.models.payment import Payment
from reforma.models.project import Project, ProjectStatus
from reforma.repositories.base import (
    BillRepository,
    ContractLineItemRepository,
    MortgageRepository,
    PaymentRepository,
    ProjectRepository,
)


def _now() -> datetime:
    return datetime.now(SP_TZ)


def _in_clause(ids: list[int]) -> tuple[str, dict[str, int]]:
    placeholders = ", ".join(f":id{i}" for i in range(len(ids)))
    params = {f"id{i}": value for i, value in enumerate(ids)}
    return placeholders, params


class SQLAlchemyProjectRepository(ProjectRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, project: Project) -> Project:
        result = self.conn.execute(
            text(
                "INSERT INTO projects (uuid, name, status, contractor_name, contract_amount, created_at) "
                "VALUES (:uuid, :name, :status, :contractor_name, :contract_amount, :created_at)"
            ),
            {
                "uuid": str(ULID()),
                "name": project.name,
                "status": project.status.value,
                "contractor_name": project.contractor_name,
                "contract_amount": project.contract_amount,
                "created_at": _now(),
            },
        )
        project_id = result.lastrowid
        self.conn.commit()
        created = self.get_by_id(project_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve project after create (id={project_id})")
        return created

    @staticmethod
    def _build_project(row: RowMapping) -> Project:
        return Project(
            id=row["id"],
            uuid=row["uuid"],
            name=row["name"],
            status=ProjectStatus(row["status"]),
            contractor_name=row["contractor_name"],
            contract_amount=row["contract_amount"],
            created_at=row["created_at"],
        )

    def get_by_id(self, project_id: int) -> Project | None:
        row = (
            self.conn.execute(text("SELECT * FROM projects WHERE id = :id"), {"id": project_id})
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._build_project(row)

    def list_all(self) -> list[Project]:
        rows = self.conn.execute(text("SELECT * FROM projects ORDER BY created_at DESC, id DESC")).mappings().fetchall()
        return [self._build_project(row) for row in rows]

    def update(self, project: Project) -> Project:
        if project.id is None:
            raise ValueError("Cannot update project without an id")
        self.conn.execute(
            text(
                "UPDATE projects SET name = :name, status = :status, contractor_name = :contractor_name, "
                "contract_amount = :contract_amount WHERE id = :id"
            ),
            {
                "name": project.name,
                "status": project.status.value,
                "contractor_name": project.contractor_name,
                "contract_amount": project.contract_amount,
                "id": project.id,
            },
        )
        self.conn.commit()
        updated = self.get_by_id(project.id)
        if updated is None:
            raise RuntimeError(f"Failed to retrieve project after update (id={project.id})")
        return updated


class SQLAlchemyContractLineItemRepository(ContractLineItemRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create_many(self, project_id: int, items: list[ContractLineItem]) -> list[ContractLineItem]:
        for i, item in enumerate(items):
            self.conn.execute(
                text(
                    "INSERT INTO contract_line_items (project_id, description, category, budgeted_amount, sort_order) "
                    "VALUES (:project_id, :description, :category, :budgeted_amount, :sort_order)"
                ),
                {
                    "project_id": project_id,
                    "description": item.description,
                    "category": item.category,
                    "budgeted_amount": item.budgeted_amount,
                    "sort_order": item.sort_order if item.sort_order is not None else i,
                },
            )
        self.conn.commit()
        return self.list_by_project(project_id)

    def list_by_project(self, project_id: int) -> list[ContractLineItem]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM contract_line_items WHERE project_id = :project_id ORDER BY sort_order, id"),
                {"project_id": project_id},
            )
            .mappings()
            .fetchall()
        )
        return [
            ContractLineItem(
                id=row["id"],
                project_id=row["project_id"],
                description=row["description"],
                category=row["category"],
                budgeted_amount=row["budgeted_amount"],
                sort_order=row["sort_order"],
            )
            for row in rows
        ]


class SQLAlchemyBillRepository(BillRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def _insert_line_items(self, bill_id: int, items: list[BillLineItem], start: int = 0) -> None:
        for i, item in enumerate(items, start=start):
            self.conn.execute(
                text(
                    "INSERT INTO bill_line_items (bill_id, contract_line_item_id, description, amount, "
                    "is_deviation, deviation_reason, sort_order) "
                    "VALUES (:bill_id, :contract_line_item_id, :description, :amount, "
                    ":is_deviation, :deviation_reason, :sort_order)"
                ),
                {
                    "bill_id": bill_id,
                    "contract_line_item_id": item.contract_line_item_id,
                    "description": item.description,
                    "amount": item.amount,
                    "is_deviation": item.is_deviation,
                    "deviation_reason": item.deviation_reason,
                    "sort_order": i,
                },
            )

    def create(self, bill: Bill) -> Bill:
        result = self.conn.execute(
            text(
                "INSERT INTO bills (uuid, project_id, bill_number, contractor_name, issue_date, due_date, "
                "total_amount, status, notes, created_at) "
                "VALUES (:uuid, :project_id, :bill_number, :contractor_name, :issue_date, :due_date, "
                ":total_amount, :status, :notes, :created_at)"
            ),
            {
                "uuid": str(ULID()),
                "project_id": bill.project_id,
                "bill_number": bill.bill_number,
                "contractor_name": bill.contractor_name,
                "issue_date": bill.issue_date,
                "due_date": bill.due_date,
                "total_amount": bill.total_amount,
                "status": bill.status.value,
                "notes": bill.notes,
                "created_at": _now(),
            },
        )
        bill_id = result.lastrowid
        self._insert_line_items(bill_id, bill.line_items)
        self.conn.commit()
        created = self.get_by_id(bill_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve bill after create (id={bill_id})")
        return created

    @staticmethod
    def _build_line_item(row: RowMapping) -> BillLineItem:
        return BillLineItem(
            id=row["id"],
            bill_id=row["bill_id"],
            contract_line_item_id=row["contract_line_item_id"],
            description=row["description"],
            amount=row["amount"],
            is_deviation=bool(row["is_deviation"]),
            deviation_reason=row["deviation_reason"],
            sort_order=row["sort_order"],
        )

    @classmethod
    def _build_bill(cls, row: RowMapping, item_rows: list[RowMapping]) -> Bill:
        return Bill(
            id=row["id"],
            uuid=row["uuid"],
            project_id=row["project_id"],
            bill_number=row["bill_number"],
            contractor_name=row["contractor_name"],
            issue_date=row["issue_date"],
            due_date=row["due_date"],
            total_amount=row["total_amount"],
            status=BillStatus(row["status"]),
            notes=row["notes"],
            line_items=[cls._build_line_item(item_row) for item_row in item_rows],
            created_at=row["created_at"],
        )

    def _fetch_items(self, bill_id: int) -> list[RowMapping]:
        return list(
            self.conn.execute(
                text("SELECT * FROM bill_line_items WHERE bill_id = :bill_id ORDER BY sort_order, id"),
                {"bill_id": bill_id},
            )
            .mappings()
            .fetchall()
        )

    def get_by_id(self, bill_id: int) -> Bill | None:
        row = self.conn.execute(text("SELECT * FROM bills WHERE id = :id"), {"id": bill_id}).mappings().fetchone()
        if row is None:
            return None
        return self._build_bill(row, self._fetch_items(bill_id))

    def list_by_project(self, project_id: int) -> list[Bill]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM bills WHERE project_id = :project_id ORDER BY issue_date, id"),
                {"project_id": project_id},
            )
            .mappings()
            .fetchall()
        )
        if not rows:
            return []
        placeholders, params = _in_clause([row["id"] for row in rows])
        all_items = (
            self.conn.execute(
                text(f"SELECT * FROM bill_line_items WHERE bill_id IN ({placeholders}) ORDER BY sort_order, id"),
                params,
            )
            .mappings()
            .fetchall()
        )
        items_by_bill: dict[int, list[RowMapping]] = {}
        for item_row in all_items:
            items_by_bill.setdefault(item_row["bill_id"], []).append(item_row)
        return [self._build_bill(row, items_by_bill.get(row["id"], [])) for row in rows]

    def add_line_items(self, bill_id: int, items: list[BillLineItem]) -> list[BillLineItem]:
        existing = self._fetch_items(bill_id)
        start = max((r["sort_order"] for r in existing), default=-1) + 1
        self._insert_line_items(bill_id, items, start=start)
        self.conn.commit()
        return [self._build_line_item(row) for row in self._fetch_items(bill_id)[len(existing) :]]

    def update_status(self, bill_id: int, status: BillStatus) -> None:
        self.conn.execute(
            text("UPDATE bills SET status = :status WHERE id = :id"),
            {"status": status.value, "id": bill_id},
        )
        self.conn.commit()

    def delete(self, bill_id: int) -> None:
        self.conn.execute(text("DELETE FROM bill_line_items WHERE bill_id = :id"), {"id": bill_id})
        self.conn.execute(text("DELETE FROM bills WHERE id = :id"), {"id": bill_id})
        self.conn.commit()


class SQLAlchemyPaymentRepository(PaymentRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, payment: Payment) -> Payment:
        result = self.conn.execute(
            text(
                "INSERT INTO payments (uuid, project_id, mortgage_id, paid_by, amount, payment_date, "
                "payment_method, notes, proof_file_id, proof_url, created_at) "
                "VALUES (:uuid, :project_id, :mortgage_id, :paid_by, :amount, :payment_date, "
                ":payment_method, :notes, :proof_file_id, :proof_url, :created_at)"
            ),
            {
                "uuid": str(ULID()),
                "project_id": payment.project_id,
                "mortgage_id": payment.mortgage_id,
                "paid_by": payment.paid_by,
                "amount": payment.amount,
                "payment_date": payment.payment_date,
                "payment_method": payment.payment_method,
                "notes": payment.notes,
                "proof_file_id": payment.proof_file_id,
                "proof_url": payment.proof_url,
                "created_at": _now(),
            },
        )
        payment_id = result.lastrowid
        self.conn.commit()
        created = self.get_by_id(payment_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve payment after create (id={payment_id})")
        return created

    @staticmethod
    def _build_payment(row: RowMapping) -> Payment:
        return Payment(
            id=row["id"],
            uuid=row["uuid"],
            project_id=row["project_id"],
            mortgage_id=row["mortgage_id"],
            paid_by=row["paid_by"],
            amount=row["amount"],
            payment_date=row["payment_date"],
            payment_method=row["payment_method"],
            notes=row["notes"],
            proof_file_id=row["proof_file_id"],
            proof_url=row["proof_url"],
            created_at=row["created_at"],
        )

    def _select(self, where: str = "", params: dict | None = None) -> list[Payment]:
        sql = "SELECT * FROM payments"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY payment_date DESC, id DESC"
        rows = self.conn.execute(text(sql), params or {}).mappings().fetchall()
        return [self._build_payment(row) for row in rows]

    def get_by_id(self, payment_id: int) -> Payment | None:
        found = self._select("id = :id", {"id": payment_id})
        return found[0] if found else None

    def list_all(self) -> list[Payment]:
        return self._select()

    def list_by_project(self, project_id: int) -> list[Payment]:
        return self._select("project_id = :project_id", {"project_id": project_id})

    def list_by_mortgage(self, mortgage_id: int) -> list[Payment]:
        return self._select("mortgage_id = :mortgage_id", {"mortgage_id": mortgage_id})

    def delete(self, payment_id: int) -> None:
        self.conn.execute(text("DELETE FROM payments WHERE id = :id"), {"id": payment_id})
        self.conn.commit()


class SQLAlchemyMortgageRepository(MortgageRepository):
    """The household has at most one mortgage; ``upsert`` keeps it that way."""

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def get(self) -> MortgageLoan | None:
        row = self.conn.execute(text("SELECT * FROM mortgages ORDER BY id LIMIT 1")).mappings().fetchone()
        if row is None:
            return None
        return MortgageLoan(
            id=row["id"],
            property_name=row["property_name"],
            purchase_price=row["purchase_price"],
            principal=row["principal"],
            annual_interest_rate_pct=row["annual_interest_rate_pct"],
            term_months=row["term_months"],
            start_date=row["start_date"],
            monthly_payment=row["monthly_payment"],
            updated_at=row["updated_at"],
        )

    def upsert(self, mortgage: MortgageLoan) -> MortgageLoan:
        params = {
            "property_name": mortgage.property_name,
            "purchase_price": mortgage.purchase_price,
            "principal": mortgage.principal,
            "annual_interest_rate_pct": mortgage.annual_interest_rate_pct,
            "term_months": mortgage.term_months,
            "start_date": mortgage.start_date,
            "monthly_payment": mortgage.monthly_payment,
            "updated_at": _now(),
        }
        existing = self.get()
        if existing is None:
            self.conn.execute(
                text(
                    "INSERT INTO mortgages (property_name, purchase_price, principal, annual_interest_rate_pct, "
                    "term_months, start_date, monthly_payment, updated_at) "
                    "VALUES (:property_name, :purchase_price, :principal, :annual_interest_rate_pct, "
                    ":term_months, :start_date, :monthly_payment, :updated_at)"
                ),
                params,
            )
        else:
            self.conn.execute(
                text(
                    "UPDATE mortgages SET property_name = :property_name, purchase_price = :purchase_price, "
                    "principal = :principal, annual_interest_rate_pct = :annual_interest_rate_pct, "
                    "term_months = :term_months, start_date = :start_date, "
                    "monthly_payment = :monthly_payment, updated_at = :updated_at WHERE id = :id"
                ),
                {**params, "id": existing.id},
            )
        self.conn.commit()
        result = self.get()
        if result is None:
            raise RuntimeError("Failed to retrieve mortgage after upsert")
        return result
