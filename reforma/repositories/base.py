from abc import ABC, abstractmethod

from reforma.models.bill import Bill, BillLineItem, BillStatus
from reforma.models.contract import ContractLineItem
from reforma.models.mortgage import MortgageLoan
from reforma.models.payment import Payment
from reforma.models.project import Project


class ProjectRepository(ABC):
    @abstractmethod
    def create(self, project: Project) -> Project: ...

    @abstractmethod
    def get_by_id(self, project_id: int) -> Project | None: ...

    @abstractmethod
    def list_all(self) -> list[Project]: ...

    @abstractmethod
    def update(self, project: Project) -> Project: ...


class ContractLineItemRepository(ABC):
    @abstractmethod
    def create_many(self, project_id: int, items: list[ContractLineItem]) -> list[ContractLineItem]: ...

    @abstractmethod
    def list_by_project(self, project_id: int) -> list[ContractLineItem]: ...


class BillRepository(ABC):
    @abstractmethod
    def create(self, bill: Bill) -> Bill: ...

    @abstractmethod
    def get_by_id(self, bill_id: int) -> Bill | None: ...

    @abstractmethod
    def list_by_project(self, project_id: int) -> list[Bill]: ...

    @abstractmethod
    def add_line_items(self, bill_id: int, items: list[BillLineItem]) -> list[BillLineItem]: ...

    @abstractmethod
    def update_status(self, bill_id: int, status: BillStatus) -> None: ...

    @abstractmethod
    def delete(self, bill_id: int) -> None: ...


class PaymentRepository(ABC):
    @abstractmethod
    def create(self, payment: Payment) -> Payment: ...

    @abstractmethod
    def get_by_id(self, payment_id: int) -> Payment | None: ...

    @abstractmethod
    def list_all(self) -> list[Payment]: ...

    @abstractmethod
    def list_by_project(self, project_id: int) -> list[Payment]: ...

    @abstractmethod
    def list_by_mortgage(self, mortgage_id: int) -> list[Payment]: ...

    @abstractmethod
    def delete(self, payment_id: int) -> None: ...


class MortgageRepository(ABC):
    @abstractmethod
    def get(self) -> MortgageLoan | None: ...

    @abstractmethod
    def upsert(self, mortgage: MortgageLoan) -> MortgageLoan: ...
