"""
End-to-end tests for the boletos queries against the fake Cora API.
"""
import logging
from datetime import date

import pytest

from app.services.boletos import (
    buscar_todos_boletos,
    consultar_boleto_formatado,
    consultar_boletos_por_cpf,
)
from app.services.errors import DetailFetchFailed, UpstreamRequestFailed

CPF = "52998224725"


def _detail(id_: str, status: str, due: str, amount: int = 10000) -> dict:
    return {
        "id": id_,
        "status": status,
        "total_amount": amount,
        "customer": {"name": "Maria Souza", "document": {"identity": CPF}},
        "payment_terms": {"due_date": due},
        "pix": {"key": f"pix-{id_}"},
    }


@pytest.mark.asyncio
async def test_cpf_lookup_classifies_enriched_invoices(cora_client, fake_cora):
    fake_cora.invoices = [
        _detail("A", "OPEN", "2024-01-01"),
        _detail("B", "LATE", "2023-06-01"),
        _detail("C", "CANCELLED", "2024-01-01"),
    ]

    result = await consultar_boletos_por_cpf(CPF, today=date(2024, 2, 1), client=cora_client)

    assert [b.id for b in result.overdue] == ["B", "A"]
    assert result.next_due.id == "B"
    assert result.overdue[0].amount == "R$ 100,00"
    assert result.overdue[0].pix_key == "pix-B"
    [list_request] = fake_cora.paths("/v2/invoices")
    assert list_request.url.params["search"] == CPF


@pytest.mark.asyncio
async def test_failed_detail_is_dropped_and_logged(cora_client, fake_cora, caplog):
    fake_cora.invoices = [
        _detail("A", "OPEN", "2024-03-01"),
        _detail("B", "OPEN", "2024-04-01"),
        _detail("C", "LATE", "2024-01-01"),
    ]
    fake_cora.failing_details["A"] = 500

    with caplog.at_level(logging.WARNING):
        result = await consultar_boletos_por_cpf(CPF, today=date(2024, 2, 1), client=cora_client)

    assert [b.id for b in result.overdue] == ["C"]
    assert result.next_due.id == "B"
    assert any("para A:" in r.getMessage() for r in caplog.records if r.levelno == logging.WARNING)


@pytest.mark.asyncio
async def test_list_failure_propagates(cora_client, fake_cora):
    fake_cora.list_status = 502

    with pytest.raises(UpstreamRequestFailed):
        await consultar_boletos_por_cpf(CPF, client=cora_client)


@pytest.mark.asyncio
async def test_no_invoices(cora_client, fake_cora):
    result = await consultar_boletos_por_cpf(CPF, today=date(2024, 2, 1), client=cora_client)
    assert result.empty


@pytest.mark.asyncio
async def test_full_listing_skips_cancelled(cora_client, fake_cora):
    fake_cora.invoices = [
        _detail("A", "OPEN", "2024-03-01"),
        _detail("B", "CANCELLED", "2024-04-01"),
        _detail("C", "PAID", "2023-01-01"),
    ]

    boletos = await buscar_todos_boletos(CPF, client=cora_client)

    assert [b.id for b in boletos] == ["A", "C"]
    [list_request] = fake_cora.paths("/v2/invoices")
    assert list_request.url.params["customer_document"] == CPF


@pytest.mark.asyncio
async def test_single_invoice_lookup(cora_client, fake_cora):
    fake_cora.invoices = [_detail("A", "OPEN", "2024-03-01", amount=123456)]

    boleto = await consultar_boleto_formatado("A", client=cora_client)

    assert boleto.id == "A"
    assert boleto.amount == "R$ 1.234,56"
    assert boleto.customer_document == CPF


@pytest.mark.asyncio
async def test_single_invoice_not_found(cora_client, fake_cora):
    with pytest.raises(DetailFetchFailed) as exc_info:
        await consultar_boleto_formatado("missing", client=cora_client)
    assert exc_info.value.status_code == 404
