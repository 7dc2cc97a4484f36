from __future__ import annotations

from rich.console import Console
from rich.table import Table

from reforma.constants import format_month
from reforma.models import format_brl
from reforma.services.payment_service import PaymentService, aggregate_by_payer, monthly_buckets, percentage_share
from reforma.settings import settings

console = Console()


def payments_summary_menu(payment_service: PaymentService) -> None:
    payments = payment_service.list_payments()
    if not payments:
        console.print("[yellow]Nenhum pagamento registrado.[/yellow]")
        return

    totals = aggregate_by_payer(payments)
    shares = percentage_share(totals)

    table = Table(title="Contribuições")
    table.add_column("Pagador", style="bold")
    table.add_column("Total", justify="right")
    table.add_column("%", justify="right")
    for payer, amount in totals.items():
        table.add_row(payer, format_brl(amount), f"{shares[payer]:.0f}%")
    console.print()
    console.print(table)

    months = Table(title="Por mês")
    months.add_column("Mês")
    months.add_column("Valor", justify="right")
    for bucket in monthly_buckets(payments, settings.months_back):
        months.add_row(format_month(bucket.month), format_brl(bucket.amount))
    console.print(months)
    console.print(f"  [bold]Total: {format_brl(sum(totals.values()))}[/bold]")
