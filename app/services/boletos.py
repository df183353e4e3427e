"""
Consultas de boletos usadas pelos routers.

consultar_boletos_por_cpf: lista -> detalhes -> formata -> classifica.
"""
import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from app.config import settings
from app.models.invoice import ClassificationResult, EnrichedInvoice, EnrichmentResult
from app.services.cora_api import CoraClient, get_cora_client
from app.services.invoice_classifier import classify
from app.services.invoice_fetcher import enrich_details, fetch_all_summaries
from app.services.invoice_format import format_invoice

logger = logging.getLogger(__name__)


def today_local() -> date:
    return datetime.now(ZoneInfo(settings.timezone)).date()


def _format_all(enriched: EnrichmentResult, skip_cancelled: bool = False) -> list[EnrichedInvoice]:
    formatted: list[EnrichedInvoice] = []
    for outcome in enriched.details:
        if skip_cancelled and str(outcome.detail.get("status") or "").upper().startswith("CANCEL"):
            logger.info("Ignorando boleto cancelado: %s", outcome.invoice_id)
            continue
        invoice = format_invoice(outcome.detail)
        if invoice is not None:
            formatted.append(invoice)
    return formatted


async def consultar_boletos_por_cpf(
    cpf: str,
    *,
    today: date | None = None,
    client: CoraClient | None = None,
) -> ClassificationResult:
    """Busca os boletos do CPF e separa atrasados / próximo a vencer."""
    client = client or get_cora_client()
    logger.info("Iniciando busca de boletos na Cora para o CPF: %s...", cpf)

    summaries = await fetch_all_summaries(client, cpf, filter_param="search")
    enriched = await enrich_details(client, summaries)
    formatted = _format_all(enriched)
    logger.info("Todos os detalhes obtidos e formatados: %d boletos.", len(formatted))

    return classify(formatted, today or today_local())


async def buscar_todos_boletos(
    customer_document: str | None = None,
    *,
    client: CoraClient | None = None,
) -> list[EnrichedInvoice]:
    """Todos os boletos formatados (opcionalmente de um documento), sem cancelados."""
    client = client or get_cora_client()
    logger.info("Iniciando busca de boletos (formatados) na Cora para CPF: %s...", customer_document or "TODOS")

    summaries = await fetch_all_summaries(client, customer_document, filter_param="customer_document")
    enriched = await enrich_details(client, summaries)
    formatted = _format_all(enriched, skip_cancelled=True)

    logger.info("Busca concluída. Total boletos formatados: %d", len(formatted))
    return formatted


async def consultar_boleto_formatado(
    invoice_id: str,
    *,
    client: CoraClient | None = None,
) -> EnrichedInvoice | None:
    """Consulta um boleto por id. Raises DetailFetchFailed on failure."""
    client = client or get_cora_client()
    logger.info("Consultando e formatando boleto id=%s...", invoice_id)
    detail = await client.get_invoice(invoice_id, timeout=settings.cora_timeout_seconds)
    return format_invoice(detail)
