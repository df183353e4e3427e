import traceback
from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    return {"mensagem": "API OK", "build": "GET-CPF-ATIVO"}


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/debug/cora-token")
async def debug_cora_token():
    """Testa obtenção do token Cora (mTLS + client_credentials) e retorna status."""
    try:
        from app.services.cora_api import get_cora_client
        token = await get_cora_client().get_token()
        return {"status": "ok", "token_prefix": token[:20] + "...", "token_len": len(token)}
    except Exception as e:
        return {"status": "error", "error": str(e), "traceback": traceback.format_exc()}
