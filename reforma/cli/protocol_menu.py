from __future__ import annotations

from pathlib import Path

import questionary
from rich.console import Console
from rich.table import Table

from reforma.constants import EMPTY, format_date_br
from reforma.models import format_brl
from reforma.models.obligation import CandidateFile, ObligationRecord, ParseIssue
from reforma.services.message_service import render_obligation_message, whatsapp_link
from reforma.services.obligation_service import ObligationService, assign_obligations
from reforma.settings import settings

console = Console()


def _candidate_files(folder: str) -> list[CandidateFile]:
    if not folder:
        return []
    path = Path(folder).expanduser()
    if not path.is_dir():
        console.print(f"[yellow]Pasta não encontrada: {folder}[/yellow]")
        return []
    return [CandidateFile(name=p.name, ref=str(p)) for p in sorted(path.iterdir()) if p.is_file()]


def _show_obligations(obligations: list[ObligationRecord]) -> None:
    table = Table(title="Obrigações")
    table.add_column("#", style="dim")
    table.add_column("Fornecedor", style="bold")
    table.add_column("Vencimento")
    table.add_column("Valor", justify="right")
    table.add_column("Status")
    table.add_column("Boleto")
    table.add_column("NF")
    for i, o in enumerate(obligations, start=1):
        table.add_row(
            str(i),
            o.supplier,
            format_date_br(o.due_date),
            format_brl(o.amount),
            o.status,
            o.slip_file.name if o.slip_file else EMPTY,
            o.invoice_file.name if o.invoice_file else EMPTY,
        )
    console.print(table)


def import_protocol_menu(obligation_service: ObligationService) -> None:
    console.print()
    console.print("[bold]Importar Protocolo[/bold]", style="cyan")

    sheet_path = questionary.path("Planilha do protocolo (.xlsx):").ask()
    if not sheet_path:
        console.print("[yellow]Operação cancelada.[/yellow]")
        return
    path = Path(sheet_path).expanduser()
    if not path.is_file():
        console.print(f"[red]Arquivo não encontrado: {sheet_path}[/red]")
        return

    folder = questionary.path("Pasta com boletos e notas (opcional):", only_directories=True).ask() or ""
    issues: list[ParseIssue] = []
    obligations = obligation_service.import_protocol(path.read_bytes(), _candidate_files(folder), issues)

    if not obligations:
        console.print("[yellow]Nenhuma obrigação encontrada na planilha.[/yellow]")
        return
    _show_obligations(obligations)
    for issue in issues:
        console.print(f"  [dim]{issue.sheet_name}:{issue.row_number} ignorada — {issue.reason}[/dim]")

    recipient = settings.message_recipient
    labels = {f"{i} - {o.supplier} ({format_brl(o.amount)})": i for i, o in enumerate(obligations)}
    picked = questionary.checkbox(f"Itens para {recipient}:", choices=list(labels)).ask() or []
    if not picked:
        return
    obligations = assign_obligations(obligations, {labels[label]: recipient for label in picked})

    protocol_name = obligations[0].protocol_number or path.stem
    message = render_obligation_message(obligations, recipient, protocol_name)
    if not message:
        return
    console.print()
    console.print(message, markup=False)
    console.print()
    console.print("Enviar pelo WhatsApp:", style="bold")
    console.print(whatsapp_link(message, settings.message_phone), markup=False, soft_wrap=True)
