"""
Separa boletos ativos em atrasados e próximo a vencer.
"""
import logging
from datetime import date, datetime

from app.models.invoice import ClassificationResult, EnrichedInvoice

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {"OPEN", "LATE"}


def is_active(invoice: EnrichedInvoice) -> bool:
    status = str(invoice.status or "").upper()
    return status in ACTIVE_STATUSES and status != "CANCELLED"


def classify(invoices: list[EnrichedInvoice], today: date | datetime) -> ClassificationResult:
    """Overdue = due strictly before today (date only), ascending by due date.

    next_due is the earliest invoice due today or later. When nothing is
    pending it falls back to the oldest overdue one.
    """
    if isinstance(today, datetime):
        today = today.date()

    overdue: list[tuple[date, EnrichedInvoice]] = []
    upcoming: list[tuple[date, EnrichedInvoice]] = []
    skipped = 0

    for invoice in invoices:
        if not is_active(invoice):
            continue
        due = invoice.due_day()
        if due is None:
            logger.warning("Boleto %s sem data de vencimento válida (%r), ignorado.", invoice.id, invoice.due_date)
            skipped += 1
            continue
        if due < today:
            overdue.append((due, invoice))
        else:
            upcoming.append((due, invoice))

    # sort() is stable: ties keep input order
    overdue.sort(key=lambda pair: pair[0])
    upcoming.sort(key=lambda pair: pair[0])

    next_due = None
    if upcoming:
        next_due = upcoming[0][1]
    elif overdue:
        next_due = overdue[0][1]

    logger.info(
        "%d boletos atrasados encontrados (%d sem vencimento válido ignorados).",
        len(overdue), skipped,
    )
    if next_due is not None:
        logger.info(
            "Próximo boleto a vencer (ou mais antigo atrasado): ID %s, Vencimento: %s, Status: %s",
            next_due.id, next_due.due_date, next_due.status,
        )
    else:
        logger.info("Nenhum próximo boleto a vencer encontrado.")

    return ClassificationResult(overdue=[inv for _, inv in overdue], next_due=next_due)
