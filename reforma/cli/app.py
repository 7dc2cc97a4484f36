import questionary
from rich.console import Console

from reforma.cli.mortgage_menu import mortgage_menu
from reforma.cli.payment_menu import payments_summary_menu
from reforma.cli.project_menu import create_project_menu, list_projects_menu
from reforma.cli.protocol_menu import import_protocol_menu
from reforma.repositories.factory import (
    get_bill_repository,
    get_contract_line_item_repository,
    get_mortgage_repository,
    get_payment_repository,
    get_project_repository,
)
from reforma.services.ledger_service import LedgerService
from reforma.services.mortgage_service import MortgageService
from reforma.services.obligation_service import ObligationService
from reforma.services.payment_service import PaymentService

console = Console()


def _build_services() -> tuple[LedgerService, PaymentService, MortgageService, ObligationService]:
    payment_repo = get_payment_repository()
    return (
        LedgerService(get_project_repository(), get_contract_line_item_repository(), get_bill_repository()),
        PaymentService(payment_repo),
        MortgageService(get_mortgage_repository(), payment_repo),
        ObligationService(),
    )


def main_menu() -> None:
    ledger_service, payment_service, mortgage_service, obligation_service = _build_services()

    console.print()
    console.print("[bold]Reforma & Financiamento[/bold]", style="cyan")
    console.print()

    while True:
        choice = questionary.select(
            "Menu Principal",
            choices=[
                "Listar Obras",
                "Nova Obra",
                "Pagamentos",
                "Financiamento",
                "Importar Protocolo",
                "Sair",
            ],
        ).ask()

        if choice is None or choice == "Sair":
            console.print("[bold]Até logo![/bold]")
            break
        elif choice == "Listar Obras":
            list_projects_menu(ledger_service, payment_service)
        elif choice == "Nova Obra":
            create_project_menu(ledger_service)
        elif choice == "Pagamentos":
            payments_summary_menu(payment_service)
        elif choice == "Financiamento":
            mortgage_menu(mortgage_service)
        elif choice == "Importar Protocolo":
            import_protocol_menu(obligation_service)
