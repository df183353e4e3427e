"""
API Boletos Cora - consulta de boletos por CPF.
Atrasados + próximo a vencer, com pix / código de barras / linha digitável.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.routers import boletos, health
from app.services.cora_api import close_cora_client, get_cora_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
# Silence httpx per-request logs (one line per invoice detail)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    # Fail at startup on missing base URL / client id / cert sources
    get_cora_client()
    logger.info(
        "CORS permitido para: %s",
        settings.frontend_url or "qualquer origem (FRONTEND_URL não configurado)",
    )
    yield
    await close_cora_client()


app = FastAPI(
    title="API Boletos Cora",
    description="Consulta de boletos (atrasados e próximo a vencer) por CPF na Cora",
    version="1.0.0",
    lifespan=lifespan,
)

origins = [o.strip() for o in settings.frontend_url.split(",") if o.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(boletos.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        logger.warning("Rota não encontrada: %s %s", request.method, request.url.path)
        return JSONResponse(status_code=404, content={"erro": "Rota não encontrada."})
    return JSONResponse(status_code=exc.status_code, content={"erro": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Erro inesperado no servidor: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"erro": "Ocorreu um erro interno no servidor. Por favor, tente novamente mais tarde."},
    )
