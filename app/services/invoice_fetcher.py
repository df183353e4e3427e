"""
Busca de boletos na Cora: listagem paginada + detalhes em lotes.

List failures abort everything (an incomplete list would silently produce a
wrong classification). Detail failures are absorbed per item.
"""
import asyncio
import logging

from app.config import settings
from app.models.invoice import DetailOutcome, EnrichmentResult
from app.services.cora_api import CoraClient

logger = logging.getLogger(__name__)


async def fetch_all_summaries(
    client: CoraClient,
    payer_filter: str | None = None,
    *,
    filter_param: str = "search",
    page_size: int | None = None,
    pause_seconds: float | None = None,
) -> list[dict]:
    """Paginate GET /v2/invoices until an empty page or totalItems is reached.

    The date window is deliberately wide; filtering by date happens in the
    classifier. Raises UpstreamRequestFailed on any page failure.
    """
    per_page = page_size or settings.cora_page_size
    pause = settings.cora_page_pause_seconds if pause_seconds is None else pause_seconds

    summaries: list[dict] = []
    page = 1
    total_items = 0

    while True:
        params = {
            "page": page,
            "perPage": per_page,
            "start": settings.cora_list_start,
            "end": settings.cora_list_end,
        }
        if payer_filter:
            params[filter_param] = payer_filter

        logger.info("Buscando página %d da API Cora (%s=%s)...", page, filter_param, payer_filter or "TODOS")
        data = await client.list_invoices(params)

        items = data.get("items") or []
        total_items = data.get("totalItems") or total_items or len(items)
        logger.debug("Página %d: %d items (totalItems=%d)", page, len(items), total_items)

        if not items:
            logger.info("Nenhum item encontrado na página %d. Encerrando paginação.", page)
            break

        summaries.extend(items)
        if len(summaries) >= total_items:
            break

        page += 1
        await asyncio.sleep(pause)

    logger.info("Listagem concluída: %d boletos encontrados.", len(summaries))
    return summaries


async def _fetch_detail(client: CoraClient, invoice_id: str) -> DetailOutcome:
    try:
        detail = await client.get_invoice(invoice_id)
    except Exception as e:
        return DetailOutcome(invoice_id=invoice_id, error=str(e))
    return DetailOutcome(invoice_id=invoice_id, detail=detail)


async def enrich_details(
    client: CoraClient,
    summaries: list[dict],
    *,
    batch_size: int | None = None,
    pause_seconds: float | None = None,
) -> EnrichmentResult:
    """Fetch the detail of each summary, batch by batch.

    Requests inside a batch run concurrently; batches run one after the
    other. Failed ids end up in ``failures`` and never reach the caller as
    an exception.
    """
    size = batch_size or settings.cora_detail_batch_size
    pause = settings.cora_batch_pause_seconds if pause_seconds is None else pause_seconds

    ids: list[str] = []
    for summary in summaries:
        invoice_id = summary.get("id") if isinstance(summary, dict) else None
        if not invoice_id:
            logger.warning("Boleto sem id na listagem, ignorado: %s", summary)
            continue
        ids.append(str(invoice_id))

    result = EnrichmentResult()
    for start in range(0, len(ids), size):
        batch = ids[start:start + size]
        logger.info("Processando lote %d (ids %s)", start // size + 1, ", ".join(batch))

        outcomes = await asyncio.gather(*(_fetch_detail(client, i) for i in batch))
        for outcome in outcomes:
            if outcome.ok:
                result.details.append(outcome)
            else:
                logger.warning(
                    "Não foi possível obter detalhes para %s: %s",
                    outcome.invoice_id, outcome.error or "erro desconhecido",
                )
                result.failures[outcome.invoice_id] = outcome.error or "erro desconhecido"

        if start + size < len(ids):
            await asyncio.sleep(pause)

    logger.info(
        "Detalhes obtidos: %d ok, %d falharam.", len(result.details), len(result.failures)
    )
    return result
