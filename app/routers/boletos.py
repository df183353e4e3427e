"""
Rotas de consulta de boletos por CPF.
"""
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.models.invoice import ClassificationResult
from app.services import boletos as boletos_service
from app.services.errors import DetailFetchFailed
from app.utils import cpf as validador_cpf

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/boletos", tags=["boletos"])

STATUS_ATRASADO = "ATRASADO"
STATUS_A_VENCER = "A VENCER"


class ConsultaBoletosRequest(BaseModel):
    cpf: str | None = None


def _erro(status_code: int, mensagem: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"erro": mensagem})


def montar_boletos_para_exibir(result: ClassificationResult) -> list[dict]:
    """Atrasados marcados ATRASADO + próximo a vencer (sem duplicar) como A VENCER.

    Order: overdue first, then by due date.
    """
    boletos = [{**b.model_dump(), "status": STATUS_ATRASADO} for b in result.overdue]

    proximo = result.next_due
    if proximo is not None and not any(b["id"] == proximo.id for b in boletos):
        boletos.append({**proximo.model_dump(), "status": STATUS_A_VENCER})

    boletos.sort(key=lambda b: (b["status"] != STATUS_ATRASADO, b["due_date"] or ""))
    return boletos


async def _consultar(cpf: str | None) -> JSONResponse:
    if not cpf:
        logger.warning("Requisição recebida sem CPF.")
        return _erro(400, "CPF é obrigatório.")

    if not validador_cpf.validar(cpf):
        logger.warning("Tentativa de consulta com CPF inválido: %s", cpf)
        return _erro(400, "CPF inválido. Por favor, verifique o número digitado.")

    cpf_limpo = validador_cpf.limpar(cpf)
    try:
        result = await boletos_service.consultar_boletos_por_cpf(cpf_limpo)
    except Exception as e:
        logger.error("Erro ao consultar boletos para o CPF %s: %s", cpf_limpo, e)
        return _erro(500, "Erro interno ao consultar boletos. Por favor, tente novamente mais tarde.")

    if result.empty:
        logger.info("Nenhum boleto ativo encontrado para o CPF: %s", cpf_limpo)
        return _erro(404, "Nenhum boleto ativo encontrado para o CPF fornecido.")

    boletos = montar_boletos_para_exibir(result)
    logger.info("Boletos consultados com sucesso para o CPF: %s. Total de %d boletos para exibir.", cpf_limpo, len(boletos))
    return JSONResponse(status_code=200, content={"boletos": boletos})


@router.post("/consultar-boletos")
async def consultar_boletos(body: ConsultaBoletosRequest):
    return await _consultar(body.cpf)


@router.get("")
async def listar_boletos(cpf: str | None = None):
    """Todos os boletos formatados (sem cancelados), opcionalmente filtrados por CPF."""
    documento = None
    if cpf:
        if not validador_cpf.validar(cpf):
            return _erro(400, "CPF inválido. Por favor, verifique o número digitado.")
        documento = validador_cpf.limpar(cpf)
    try:
        boletos = await boletos_service.buscar_todos_boletos(documento)
    except Exception as e:
        logger.error("Erro ao buscar todos os boletos: %s", e)
        return _erro(500, "Erro interno ao consultar boletos. Por favor, tente novamente mais tarde.")
    return {"boletos": [b.model_dump() for b in boletos]}


@router.get("/detalhe/{invoice_id}")
async def detalhe_boleto(invoice_id: str):
    try:
        boleto = await boletos_service.consultar_boleto_formatado(invoice_id)
    except DetailFetchFailed as e:
        logger.error("Erro ao consultar boleto %s: %s", invoice_id, e)
        if e.status_code == 404:
            return _erro(404, "Boleto não encontrado.")
        return _erro(502, "Erro ao consultar o boleto na Cora.")
    except Exception as e:
        logger.error("Erro ao consultar boleto %s: %s", invoice_id, e)
        return _erro(500, "Erro interno ao consultar o boleto.")
    if boleto is None:
        return _erro(404, "Boleto não encontrado.")
    return boleto.model_dump()


@router.get("/{cpf}")
async def consultar_boletos_por_cpf(cpf: str):
    return await _consultar(cpf)
