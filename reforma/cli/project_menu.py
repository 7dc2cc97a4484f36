from __future__ import annotations

from pathlib import Path

import questionary
from rich.console import Console
from rich.table import Table

from reforma.clients.claude import ClaudeClient
from reforma.errors import ExternalCollaboratorError, InvalidInput, ReferenceIntegrityError
from reforma.models import format_brl, parse_brl
from reforma.models.bill import Bill
from reforma.models.contract import ContractLineItem
from reforma.models.estimate import CostSummary
from reforma.models.payment import Payment
from reforma.models.project import Project
from reforma.services.estimate_service import EstimateService, build_summary
from reforma.services.extraction_service import DocumentExtractor, ExtractionStrategy
from reforma.services.ledger_service import LedgerService
from reforma.services.payment_service import PaymentService
from reforma.settings import settings

console = Console()

MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


def create_project_menu(ledger_service: LedgerService) -> None:
    console.print()
    console.print("[bold]Nova Obra[/bold]", style="cyan")

    name = questionary.text("Nome da obra:").ask()
    if not name:
        console.print("[yellow]Operação cancelada.[/yellow]")
        return

    contractor = questionary.text("Empreiteiro (opcional):").ask() or ""

    while True:
        amount_str = questionary.text("Valor do contrato (ex: 50000.00, opcional):").ask() or "0"
        amount = parse_brl(amount_str)
        if amount is not None and amount >= 0:
            break
        console.print("[red]Valor inválido. Tente novamente.[/red]")

    project = ledger_service.create_project(Project(name=name, contractor_name=contractor, contract_amount=amount))
    console.print(f"[green bold]Obra '{project.name}' criada com sucesso![/green bold]")


def _show_summary(summary: CostSummary) -> None:
    table = Table(title=f"Desvios — {summary.project_name}")
    table.add_column("Item")
    table.add_column("Categoria")
    table.add_column("Orçado", justify="right")
    table.add_column("Faturado", justify="right")
    table.add_column("Desvio", justify="right")
    table.add_column("%", justify="right")

    for d in summary.deviations:
        style = "red" if d.deviation > 0 else None
        table.add_row(
            d.description,
            d.category,
            format_brl(d.budgeted),
            format_brl(d.billed),
            format_brl(d.deviation),
            f"{d.deviation_pct:+.1f}%",
            style=style,
        )

    console.print(table)
    console.print(f"  Orçamento: [bold]{format_brl(summary.total_budget)}[/bold]")
    console.print(f"  Faturado: {format_brl(summary.total_billed)}")
    if summary.unmapped_billed:
        console.print(f"  [yellow]Faturado sem item de contrato: {format_brl(summary.unmapped_billed)}[/yellow]")
    console.print(f"  Pago: {format_brl(summary.total_paid)}")


def _request_estimate(
    estimate_service: EstimateService,
    project: Project,
    line_items: list[ContractLineItem],
    bills: list[Bill],
    payments: list[Payment],
) -> None:
    try:
        estimate = estimate_service.request_estimate(project, line_items, bills, payments)
    except ExternalCollaboratorError as exc:
        console.print(f"[red]Estimativa indisponível: {exc}[/red]")
        return

    console.print()
    console.print(f"[bold]Custo final estimado: {format_brl(int(estimate.estimated_final_cost))}[/bold]")
    console.print(
        f"  Faixa: {format_brl(int(estimate.confidence_low))} – {format_brl(int(estimate.confidence_high))}"
        f"  (risco: {estimate.risk_level.value})"
    )
    console.print(f"  {estimate.summary}")
    for obs in estimate.key_observations:
        console.print(f"  • {obs}")
    for rec in estimate.recommendations:
        console.print(f"  → {rec}")


def _read_document() -> tuple[bytes, str] | None:
    path_str = questionary.path("Arquivo (PDF ou imagem):").ask()
    if not path_str:
        return None
    path = Path(path_str).expanduser()
    if not path.is_file():
        console.print(f"[red]Arquivo não encontrado: {path_str}[/red]")
        return None
    return path.read_bytes(), MEDIA_TYPES.get(path.suffix.lower(), "application/pdf")


def _import_contract(ledger_service: LedgerService, extractor: DocumentExtractor, project: Project) -> None:
    document = _read_document()
    if document is None:
        return
    try:
        extraction = extractor.extract_contract(*document)
    except ExternalCollaboratorError as exc:
        console.print(f"[red]Extração falhou: {exc}[/red]")
        return
    items = ledger_service.save_contract_extraction(project.id, extraction)
    console.print(f"[green]{len(items)} itens de contrato importados.[/green]")


def _import_bill(
    ledger_service: LedgerService,
    extractor: DocumentExtractor,
    project: Project,
    line_items: list[ContractLineItem],
) -> None:
    document = _read_document()
    if document is None:
        return
    try:
        extraction = extractor.extract_bill(*document, line_items)
        bill = ledger_service.save_bill_extraction(project.id, extraction)
    except (ExternalCollaboratorError, ReferenceIntegrityError, InvalidInput) as exc:
        console.print(f"[red]Importação falhou: {exc}[/red]")
        return
    console.print(f"[green]Fatura {bill.bill_number or bill.id} importada: {format_brl(bill.billed_amount)}[/green]")


def list_projects_menu(
    ledger_service: LedgerService,
    payment_service: PaymentService,
    client: ClaudeClient | None = None,
) -> None:
    projects = ledger_service.list_projects()
    if not projects:
        console.print("[yellow]Nenhuma obra cadastrada.[/yellow]")
        return

    choices = {f"{p.id} - {p.name}": p for p in projects}
    choice = questionary.select("Selecione a obra:", choices=[*choices, "Voltar"]).ask()
    if choice is None or choice == "Voltar":
        return

    project = choices[choice]
    if project.id is None:
        raise ValueError("Project must have an id")
    line_items = ledger_service.list_contract_line_items(project.id)
    bills = ledger_service.list_bills(project.id)
    payments = payment_service.list_for_project(project.id)

    console.print()
    _show_summary(build_summary(project, line_items, bills, payments))

    if client is None and settings.has_estimator():
        client = ClaudeClient()
    if client is None:
        return

    action = questionary.select(
        "Ações:", choices=["Estimar custo final", "Importar contrato", "Importar fatura", "Voltar"]
    ).ask()
    if action == "Estimar custo final":
        _request_estimate(EstimateService(client), project, line_items, bills, payments)
    elif action == "Importar contrato":
        _import_contract(ledger_service, DocumentExtractor(client, ExtractionStrategy.from_settings()), project)
    elif action == "Importar fatura":
        _import_bill(
            ledger_service, DocumentExtractor(client, ExtractionStrategy.from_settings()), project, line_items
        )
