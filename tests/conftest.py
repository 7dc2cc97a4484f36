"""Root conftest — in-memory SQLite engine and fixtures for the full schema."""

from __future__ import annotations

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from reforma.models.bill import Bill, BillLineItem
from reforma.models.contract import ContractLineItem
from reforma.models.payment import Payment
from reforma.models.project import Project

# Matches Alembic head: 3f1c2a9b7d10 (initial schema)
SCHEMA_DDL = """
CREATE TABLE projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    name TEXT NOT NULL,
    status VARCHAR(20) NOT NULL DEFAULT 'planning',
    contractor_name TEXT NOT NULL DEFAULT '',
    contract_amount INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME NOT NULL
);

CREATE TABLE contract_line_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    description TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT '',
    budgeted_amount INTEGER NOT NULL DEFAULT 0 CHECK (budgeted_amount >= 0),
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE bills (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    project_id INTEGER NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    bill_number TEXT,
    contractor_name TEXT NOT NULL DEFAULT '',
    issue_date VARCHAR(10),
    due_date VARCHAR(10),
    total_amount INTEGER NOT NULL DEFAULT 0,
    status VARCHAR(20) NOT NULL DEFAULT 'pending',
    notes TEXT NOT NULL DEFAULT '',
    created_at DATETIME NOT NULL
);

CREATE TABLE bill_line_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bill_id INTEGER NOT NULL REFERENCES bills(id) ON DELETE CASCADE,
    contract_line_item_id INTEGER REFERENCES contract_line_items(id) ON DELETE SET NULL,
    description TEXT NOT NULL,
    amount INTEGER NOT NULL,
    is_deviation TINYINT NOT NULL DEFAULT 0,
    deviation_reason TEXT,
    sort_order INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE mortgages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    property_name TEXT NOT NULL DEFAULT 'Our Home',
    purchase_price INTEGER NOT NULL DEFAULT 0,
    principal INTEGER NOT NULL,
    annual_interest_rate_pct REAL NOT NULL,
    term_months INTEGER NOT NULL,
    start_date VARCHAR(10),
    monthly_payment INTEGER NOT NULL,
    updated_at DATETIME NOT NULL
);

CREATE TABLE payments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    project_id INTEGER REFERENCES projects(id) ON DELETE CASCADE,
    mortgage_id INTEGER REFERENCES mortgages(id) ON DELETE CASCADE,
    paid_by VARCHAR(255) NOT NULL,
    amount INTEGER NOT NULL CHECK (amount > 0),
    payment_date VARCHAR(10) NOT NULL,
    payment_method VARCHAR(50) NOT NULL DEFAULT '',
    notes TEXT NOT NULL DEFAULT '',
    proof_file_id TEXT,
    proof_url TEXT,
    created_at DATETIME NOT NULL
);
"""


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()
    yield conn
    conn.close()


def _sample_project(**overrides) -> Project:
    defaults = dict(name="Cozinha", contractor_name="Obras Silva", contract_amount=5000000)
    defaults.update(overrides)
    return Project(**defaults)


def _sample_line_items() -> list[ContractLineItem]:
    return [
        ContractLineItem(description="Demolição", category="Labor", budgeted_amount=800000),
        ContractLineItem(description="Azulejos", category="Materials", budgeted_amount=1200000),
        ContractLineItem(description="Licença", category="Permits", budgeted_amount=0),
    ]


def _sample_bill(**overrides) -> Bill:
    defaults = dict(
        project_id=1,
        bill_number="NF-100",
        contractor_name="Obras Silva",
        issue_date="2025-03-01",
        total_amount=950000,
        line_items=[
            BillLineItem(description="Demolição parcial", amount=900000),
            BillLineItem(description="Caçamba", amount=50000),
        ],
    )
    defaults.update(overrides)
    return Bill(**defaults)


def _sample_payment(**overrides) -> Payment:
    defaults = dict(project_id=1, paid_by="ana", amount=100000, payment_date="2025-03-10", payment_method="PIX")
    defaults.update(overrides)
    return Payment(**defaults)


@pytest.fixture()
def sample_project():
    return _sample_project


@pytest.fixture()
def sample_line_items():
    return _sample_line_items


@pytest.fixture()
def sample_bill():
    return _sample_bill


@pytest.fixture()
def sample_payment():
    return _sample_payment
