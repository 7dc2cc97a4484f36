from __future__ import annotations

import logging
from urllib.parse import quote

from reforma.constants import EMPTY, format_date_br
from reforma.models import format_brl
from reforma.models.obligation import ObligationRecord

logger = logging.getLogger(__name__)


def render_obligation_message(
    obligations: list[ObligationRecord], recipient: str, protocol_name: str
) -> str | None:
    """Plain-text payment list for the obligations assigned to ``recipient``.

    Returns ``None`` when nothing is assigned to them.
    """
    items = [o for o in obligations if o.assigned_to == recipient]
    if not items:
        return None

    total = sum(o.amount for o in items)
    lines = [
        f"🏠 *Casa - {protocol_name}*",
        f"Olá {recipient.capitalize()}, seguem os pagamentos desta semana:",
        "",
    ]
    for item in items:
        lines.append(f"• *{item.supplier}*")
        lines.append(f"  Valor: {format_brl(item.amount)}")
        lines.append(f"  Vencimento: {format_date_br(item.due_date)}")
        lines.append(f"  Forma: {item.payment_method or EMPTY}")
        if item.payment_code:
            lines.append("  Linha digitável:")
            lines.append(f"  `{item.payment_code}`")
        else:
            lines.append(f"  Nº: {item.invoice_number or EMPTY}")
        lines.append("")
    lines.append(f"*Total: {format_brl(total)}*")

    logger.info("Rendered message for %s: %d obligations, total=%d", recipient, len(items), total)
    return "\n".join(lines)


def whatsapp_link(message: str, phone: str = "") -> str:
    """Build a wa.me share link for a rendered message."""
    return f"https://wa.me/{phone}?text={quote(message)}"
