"""Payment-protocol spreadsheet parsing and file-to-obligation matching.

A protocol workbook has one sheet per batch. Each sheet carries a protocol
number next to a ``Nº`` cell, a header row mentioning ``FORNECEDOR`` and one
obligation per data row below it::

    | | Nº       | 2024/031  |            |          |          |        |        |
    | | FORNECEDOR | NF      | VENCIMENTO | VALOR    | CATEGORIA| STATUS | FORMA  |
    | | ACME     | INV-1     | 15/03/2024 | 1.234,56 | Labor    |        | PIX    |
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from io import BytesIO
from typing import Any

from openpyxl import load_workbook as _open_workbook

from reforma.constants import (
    HEADER_MARKER,
    INVOICE_MARKERS,
    PROTOCOL_MARKER,
    SLIP_MARKERS,
    STATUS_NOT_DUE,
    TOTAL_MARKER,
)
from reforma.errors import RowValidationError
from reforma.models.obligation import CandidateFile, ObligationRecord, ParseIssue

logger = logging.getLogger(__name__)

Cell = Any
Workbook = Mapping[str, Sequence[Sequence[Cell]]]

COL_SUPPLIER = 1
COL_INVOICE = 2
COL_DUE_DATE = 3
COL_AMOUNT = 4
COL_CATEGORY = 5
COL_STATUS = 6
COL_PAYMENT_METHOD = 7

_NON_AMOUNT_CHARS = re.compile(r"[^0-9,]")
_DMY_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})$")
_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T")


def load_workbook(data: bytes) -> dict[str, list[list[Cell]]]:
    """Read ``.xlsx`` bytes into ``{sheet_name: rows}`` keeping typed cell values."""
    wb = _open_workbook(BytesIO(data), read_only=True, data_only=True)
    try:
        return {ws.title: [list(row) for row in ws.iter_rows(values_only=True)] for ws in wb.worksheets}
    finally:
        wb.close()


def _text(cell: Cell) -> str:
    if cell is None:
        return ""
    return str(cell).strip()


def _cell(row: Sequence[Cell], index: int) -> Cell:
    return row[index] if index < len(row) else None


def parse_amount(value: Cell) -> int:
    """Parse a spreadsheet amount into centavos.

    Text keeps only digits and commas and reads the comma as the decimal
    separator, so ``'R$ 1.234,56'`` is 123456. Raises ``RowValidationError``
    for anything unusable or not positive.
    """
    if isinstance(value, bool):
        raise RowValidationError(f"not an amount: {value!r}")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NON_AMOUNT_CHARS.sub("", value).replace(",", ".", 1)
        try:
            number = float(cleaned)
        except ValueError:
            raise RowValidationError(f"not an amount: {value!r}") from None
    else:
        raise RowValidationError(f"not an amount: {value!r}")
    if not math.isfinite(number) or number <= 0:
        raise RowValidationError(f"amount must be positive: {value!r}")
    return int(round(number * 100))


def parse_due_date(value: Cell) -> str | None:
    """Normalize a due date cell to ``YYYY-MM-DD``; unknown shapes give ``None``."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        return None
    text = value.strip()
    match = _DMY_DATE.match(text)
    if match:
        day, month, year = match.groups()
        if len(year) == 2:
            year = f"20{year}"
        try:
            return date(int(year), int(month), int(day)).isoformat()
        except ValueError:
            return None
    if _ISO_DATETIME.match(text):
        try:
            return date.fromisoformat(text.split("T")[0]).isoformat()
        except ValueError:
            return None
    return None


def _find_protocol_number(row: Sequence[Cell]) -> str | None:
    for i, cell in enumerate(row):
        if _text(cell) == PROTOCOL_MARKER:
            neighbour = _text(_cell(row, i + 1))
            if neighbour:
                return neighbour
    return None


def _is_header(row: Sequence[Cell]) -> bool:
    return any(HEADER_MARKER in _text(cell) for cell in row)


def _optional(cell: Cell) -> str | None:
    return _text(cell) or None


def parse_sheet(
    sheet_name: str, rows: Iterable[Sequence[Cell]], issues: list[ParseIssue] | None = None
) -> list[ObligationRecord]:
    protocol_number: str | None = None
    header_found = False
    records: list[ObligationRecord] = []

    for row_number, row in enumerate(rows, start=1):
        row = list(row or [])
        if protocol_number is None:
            protocol_number = _find_protocol_number(row)

        if not header_found:
            header_found = _is_header(row)
            continue

        supplier = _text(_cell(row, COL_SUPPLIER))
        raw_amount = _cell(row, COL_AMOUNT)
        if not supplier or raw_amount is None or _text(raw_amount) == "":
            continue
        if TOTAL_MARKER in supplier.lower():
            continue

        try:
            amount = parse_amount(raw_amount)
        except RowValidationError as exc:
            logger.debug("Sheet %s row %d skipped: %s", sheet_name, row_number, exc)
            if issues is not None:
                issues.append(ParseIssue(sheet_name=sheet_name, row_number=row_number, reason=str(exc)))
            continue

        raw_due = _cell(row, COL_DUE_DATE)
        due_date = parse_due_date(raw_due)
        if due_date is None and raw_due not in (None, "") and issues is not None:
            issues.append(
                ParseIssue(sheet_name=sheet_name, row_number=row_number, reason=f"unrecognized due date: {raw_due!r}")
            )

        status = _text(_cell(row, COL_STATUS)).upper()
        records.append(
            ObligationRecord(
                protocol_number=protocol_number,
                sheet_name=sheet_name,
                supplier=supplier,
                invoice_number=_optional(_cell(row, COL_INVOICE)),
                due_date=due_date,
                amount=amount,
                category=_optional(_cell(row, COL_CATEGORY)),
                status=status or STATUS_NOT_DUE,
                payment_method=_optional(_cell(row, COL_PAYMENT_METHOD)),
            )
        )
    return records


def parse_obligations(workbook: Workbook, issues: list[ParseIssue] | None = None) -> list[ObligationRecord]:
    """Parse every sheet of a protocol workbook into obligations.

    Bad rows are dropped, never fatal. Pass an ``issues`` list to collect why.
    """
    records: list[ObligationRecord] = []
    for sheet_name, rows in workbook.items():
        sheet_records = parse_sheet(sheet_name, rows, issues)
        logger.debug("Sheet %s: %d obligations", sheet_name, len(sheet_records))
        records.extend(sheet_records)
    logger.info("Parsed %d obligations from %d sheets", len(records), len(workbook))
    return records


def split_file_pools(files: Iterable[CandidateFile]) -> tuple[list[CandidateFile], list[CandidateFile]]:
    """Return ``(slips, invoices)``. A name matching both markers is an invoice."""
    slips: list[CandidateFile] = []
    invoices: list[CandidateFile] = []
    for f in files:
        name = f.name.upper()
        if any(marker in name for marker in INVOICE_MARKERS):
            invoices.append(f)
        elif any(marker in name for marker in SLIP_MARKERS):
            slips.append(f)
    return slips, invoices


def supplier_key(supplier: str) -> str:
    return re.sub(r"\s+", "", supplier.upper())[:6]


def amount_keys(centavos: int) -> tuple[str, str]:
    """Filename fragments for an amount: ``('1234_56', '1235')`` for 123456.

    The first form mirrors how the amount prints with a dot swapped for an
    underscore, so trailing zeros of the fraction are dropped (``1234_5``) and
    whole amounts have no fraction at all (``1234``).
    """
    units, cents = divmod(centavos, 100)
    if cents:
        underscored = f"{units}_{f'{cents:02d}'.rstrip('0')}"
    else:
        underscored = str(units)
    rounded = units + (1 if cents >= 50 else 0)
    return underscored, f"{rounded:04d}"


def file_matches(obligation: ObligationRecord, f: CandidateFile) -> bool:
    key = supplier_key(obligation.supplier)
    underscored, padded = amount_keys(obligation.amount)
    return (bool(key) and key in f.name.upper()) or underscored in f.name or padded in f.name


def _first_match(obligation: ObligationRecord, pool: list[CandidateFile]) -> CandidateFile | None:
    return next((f for f in pool if file_matches(obligation, f)), None)


def match_files_to_obligations(
    obligations: list[ObligationRecord], files: Iterable[CandidateFile]
) -> list[ObligationRecord]:
    """Attach the first compatible slip and invoice file to each obligation.

    Best-effort: the same file may be picked for several obligations. Inputs
    are left untouched; new records are returned in the same order.
    """
    slips, invoices = split_file_pools(files)
    result: list[ObligationRecord] = []
    for obligation in obligations:
        slip = _first_match(obligation, slips)
        invoice = _first_match(obligation, invoices)
        result.append(obligation.model_copy(update={"slip_file": slip, "invoice_file": invoice}))
    matched = sum(1 for r in result if r.slip_file or r.invoice_file)
    logger.info(
        "Matched files for %d/%d obligations (%d slips, %d invoices)",
        matched,
        len(result),
        len(slips),
        len(invoices),
    )
    return result


def assign_obligations(
    obligations: list[ObligationRecord], assignments: Mapping[int, str | None]
) -> list[ObligationRecord]:
    """Return copies with ``assigned_to`` set for the given positions."""
    return [
        o.model_copy(update={"assigned_to": assignments[i]}) if i in assignments else o
        for i, o in enumerate(obligations)
    ]


class ObligationService:
    """Session workflow: spreadsheet in, matched obligations out."""

    def import_protocol(
        self,
        data: bytes,
        files: Iterable[CandidateFile] = (),
        issues: list[ParseIssue] | None = None,
    ) -> list[ObligationRecord]:
        workbook = load_workbook(data)
        obligations = parse_obligations(workbook, issues)
        return match_files_to_obligations(obligations, files)
