import pytest
from sqlalchemy import Connection

from reforma.repositories.sqlalchemy import (
    SQLAlchemyBillRepository,
    SQLAlchemyContractLineItemRepository,
    SQLAlchemyMortgageRepository,
    SQLAlchemyPaymentRepository,
    SQLAlchemyProjectRepository,
)


@pytest.fixture()
def project_repo(db_connection: Connection) -> SQLAlchemyProjectRepository:
    return SQLAlchemyProjectRepository(db_connection)


@pytest.fixture()
def line_item_repo(db_connection: Connection) -> SQLAlchemyContractLineItemRepository:
    return SQLAlchemyContractLineItemRepository(db_connection)


@pytest.fixture()
def bill_repo(db_connection: Connection) -> SQLAlchemyBillRepository:
    return SQLAlchemyBillRepository(db_connection)


@pytest.fixture()
def payment_repo(db_connection: Connection) -> SQLAlchemyPaymentRepository:
    return SQLAlchemyPaymentRepository(db_connection)


@pytest.fixture()
def mortgage_repo(db_connection: Connection) -> SQLAlchemyMortgageRepository:
    return SQLAlchemyMortgageRepository(db_connection)
