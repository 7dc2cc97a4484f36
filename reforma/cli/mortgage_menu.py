from __future__ import annotations

from datetime import datetime

import questionary
from rich.console import Console
from rich.table import Table

from reforma.constants import EMPTY, SP_TZ
from reforma.errors import InvalidInput
from reforma.models import format_brl, parse_brl
from reforma.models.mortgage import MortgageLoan
from reforma.models.payment import Payment
from reforma.services.mortgage_service import MortgageService

console = Console()


def _ask_amount(label: str, default: str = "") -> int | None:
    while True:
        value = questionary.text(label, default=default).ask()
        if value is None:
            return None
        parsed = parse_brl(value)
        if parsed is not None and parsed > 0:
            return parsed
        console.print("[red]Valor inválido. Tente novamente.[/red]")


def setup_mortgage_menu(mortgage_service: MortgageService) -> None:
    current = mortgage_service.get_mortgage()
    console.print()
    console.print("[bold]Configurar Financiamento[/bold]", style="cyan")

    principal = _ask_amount("Valor financiado (ex: 300000.00):", f"{current.principal / 100:.2f}" if current else "")
    if principal is None:
        return
    rate = questionary.text(
        "Juros anuais % (ex: 3.5):", default=str(current.annual_interest_rate_pct) if current else ""
    ).ask()
    term = questionary.text("Prazo em meses:", default=str(current.term_months) if current else "360").ask()
    payment = _ask_amount("Parcela mensal (ex: 1347.13):", f"{current.monthly_payment / 100:.2f}" if current else "")
    if payment is None or rate is None or term is None:
        return

    try:
        mortgage = MortgageLoan(
            id=current.id if current else None,
            property_name=current.property_name if current else "Our Home",
            principal=principal,
            annual_interest_rate_pct=float(rate.replace(",", ".")),
            term_months=int(term),
            monthly_payment=payment,
        )
        mortgage_service.save_mortgage(mortgage)
    except (ValueError, InvalidInput) as exc:
        console.print(f"[red]Dados inválidos: {exc}[/red]")
        return
    console.print("[green bold]Financiamento salvo![/green bold]")


def log_payment_menu(mortgage_service: MortgageService) -> None:
    mortgage = mortgage_service.get_mortgage()
    if mortgage is None:
        console.print("[yellow]Configure o financiamento primeiro.[/yellow]")
        return
    amount = _ask_amount("Valor pago:", f"{mortgage.monthly_payment / 100:.2f}")
    if amount is None:
        return
    today = datetime.now(SP_TZ).date().isoformat()
    payment_date = questionary.text("Data (AAAA-MM-DD):", default=today).ask() or today
    paid_by = questionary.text("Pago por:").ask() or ""
    if not paid_by:
        console.print("[yellow]Operação cancelada.[/yellow]")
        return
    notes = questionary.text("Observações (opcional):").ask() or ""

    mortgage_service.record_payment(
        Payment(mortgage_id=mortgage.id, paid_by=paid_by, amount=amount, payment_date=payment_date, notes=notes)
    )
    console.print("[green]Pagamento registrado.[/green]")


def show_schedule(mortgage_service: MortgageService) -> None:
    summary = mortgage_service.summary()
    reconciled = mortgage_service.reconcile()

    table = Table(title="Parcelas pagas")
    table.add_column("#", style="dim")
    table.add_column("Data")
    table.add_column("Pago", justify="right")
    table.add_column("Juros", justify="right")
    table.add_column("Amortização", justify="right")
    table.add_column("Saldo", justify="right")
    for i, item in enumerate(reconciled, start=1):
        row = item.row
        table.add_row(
            str(i),
            item.payment.payment_date,
            format_brl(item.payment.amount),
            f"{row.interest:,.2f}" if row else EMPTY,
            f"{row.principal:,.2f}" if row else EMPTY,
            f"{row.balance:,.2f}" if row else EMPTY,
        )
    console.print(table)
    console.print(f"  Total pago: [bold]{format_brl(summary.total_paid)}[/bold]")
    console.print(f"  Juros pagos: {summary.interest_paid:,.2f}")
    console.print(f"  Saldo devedor: {summary.current_balance:,.2f}")


def mortgage_menu(mortgage_service: MortgageService) -> None:
    while True:
        has_mortgage = mortgage_service.get_mortgage() is not None
        choices = ["Configurar Financiamento"]
        if has_mortgage:
            choices += ["Registrar Pagamento", "Ver Parcelas"]
        choices.append("Voltar")

        choice = questionary.select("Financiamento", choices=choices).ask()
        if choice is None or choice == "Voltar":
            return
        if choice == "Configurar Financiamento":
            setup_mortgage_menu(mortgage_service)
        elif choice == "Registrar Pagamento":
            log_payment_menu(mortgage_service)
        elif choice == "Ver Parcelas":
            show_schedule(mortgage_service)
