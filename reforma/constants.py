from zoneinfo import ZoneInfo

SP_TZ = ZoneInfo("America/Sao_Paulo")

MONTHS_PT = {
    "01": "Janeiro",
    "02": "Fevereiro",
    "03": "Março",
    "04": "Abril",
    "05": "Maio",
    "06": "Junho",
    "07": "Julho",
    "08": "Agosto",
    "09": "Setembro",
    "10": "Outubro",
    "11": "Novembro",
    "12": "Dezembro",
}

# Protocol spreadsheet layout
PROTOCOL_MARKER = "Nº"
HEADER_MARKER = "FORNECEDOR"
TOTAL_MARKER = "total"
STATUS_NOT_DUE = "A VENCER"

# Filename markers for the two file pools
SLIP_MARKERS = ("BOLETO",)
INVOICE_MARKERS = ("NF", "NOTA")

EMPTY = "—"


def format_month(ref: str) -> str:
    if not ref or "-" not in ref:
        return ref or ""
    year, month = ref.split("-")
    return f"{MONTHS_PT.get(month, month)}/{year}"


def format_date_br(iso_date: str | None) -> str:
    """'2024-03-15' -> '15/03/2024'; empty -> em-dash."""
    if not iso_date:
        return EMPTY
    return "/".join(reversed(iso_date.split("-")))
