from reforma.repositories.base import (
    BillRepository,
    ContractLineItemRepository,
    MortgageRepository,
    PaymentRepository,
    ProjectRepository,
)


def get_project_repository() -> ProjectRepository:
    from reforma.db import get_connection
    from reforma.repositories.sqlalchemy import SQLAlchemyProjectRepository

    return SQLAlchemyProjectRepository(get_connection())


def get_contract_line_item_repository() -> ContractLineItemRepository:
    from reforma.db import get_connection
    from reforma.repositories.sqlalchemy import SQLAlchemyContractLineItemRepository

    return SQLAlchemyContractLineItemRepository(get_connection())


def get_bill_repository() -> BillRepository:
    from reforma.db import get_connection
    from reforma.repositories.sqlalchemy import SQLAlchemyBillRepository

    return SQLAlchemyBillRepository(get_connection())


def get_payment_repository() -> PaymentRepository:
    from reforma.db import get_connection
    from reforma.repositories.sqlalchemy import SQLAlchemyPaymentRepository

    return SQLAlchemyPaymentRepository(get_connection())


def get_mortgage_repository() -> MortgageRepository:
    from reforma.db import get_connection
    from reforma.repositories.sqlalchemy import SQLAlchemyMortgageRepository

    return SQLAlchemyMortgageRepository(get_connection())
