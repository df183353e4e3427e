"""
Carrega certificado e chave privada do mTLS da Cora.

Prioridade: arquivo em CORA_CERT_FOLDER_PATH; fallback para o conteúdo das
variáveis CORACERT / CORAKEY (PEM literal, entre aspas, com "\\n" escapado ou
em base64).
"""
import base64
import binascii
import logging
import re
from pathlib import Path

from app.models.invoice import CredentialMaterial, Provenance
from app.services.errors import CredentialUnavailable

logger = logging.getLogger(__name__)

CERT = "cert"
KEY = "key"

_TYPE_NAMES = {CERT: "certificado", KEY: "chave privada"}
_ENV_NAMES = {CERT: "CORACERT", KEY: "CORAKEY"}

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=]+$")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_env_value(raw: str) -> tuple[bytes, Provenance]:
    """Normaliza o conteúdo vindo da env e devolve (bytes, proveniência)."""
    val = str(raw).strip()

    if len(val) >= 2 and val[0] == val[-1] and val[0] in ("'", '"'):
        val = val[1:-1]

    if "\\n" in val:
        val = val.replace("\\n", "\n")

    if "-----BEGIN" in val:
        return val.encode("utf-8"), Provenance.ENV_LITERAL

    candidate = _WHITESPACE_RE.sub("", val)
    if candidate and _BASE64_RE.match(candidate):
        try:
            return base64.b64decode(candidate), Provenance.ENV_BASE64
        except (binascii.Error, ValueError):
            logger.warning("   -> Falha ao decodificar base64. Tratando como UTF-8 simples.")

    return val.encode("utf-8"), Provenance.ENV_LITERAL


class CredentialResolver:
    """Resolves and caches cert/key material for the lifetime of the instance."""

    def __init__(
        self,
        folder_path: str = "",
        cert_filename: str = "certificate.pem",
        key_filename: str = "private_key.pem",
        cert_env: str = "",
        key_env: str = "",
    ):
        self.folder_path = folder_path
        self._filenames = {CERT: cert_filename, KEY: key_filename}
        self._env_values = {CERT: cert_env, KEY: key_env}
        self._cache: dict[str, CredentialMaterial] = {}

        for kind in (CERT, KEY):
            if not self._env_values[kind] and not self.folder_path:
                logger.error(
                    "Nenhuma fonte definida para o %s (%s ou CORA_CERT_FOLDER_PATH).",
                    _TYPE_NAMES[kind], _ENV_NAMES[kind],
                )
                raise CredentialUnavailable(
                    f"Configuração do {_TYPE_NAMES[kind]} da Cora API está faltando."
                )

    @classmethod
    def from_settings(cls, settings) -> "CredentialResolver":
        return cls(
            folder_path=settings.cora_cert_folder_path,
            cert_filename=settings.cora_cert_filename,
            key_filename=settings.cora_key_filename,
            cert_env=settings.coracert,
            key_env=settings.corakey,
        )

    def resolve(self, kind: str) -> CredentialMaterial:
        if kind not in _TYPE_NAMES:
            raise ValueError(f"Unknown credential kind: {kind!r}")
        cached = self._cache.get(kind)
        if cached is not None:
            return cached

        material = self._from_file(kind) or self._from_env(kind)
        if material is None:
            raise CredentialUnavailable(
                f"Não foi possível carregar o {_TYPE_NAMES[kind]}. "
                "Nenhuma fonte válida encontrada (arquivo ou variável de ambiente)."
            )
        logger.info("%s carregado com sucesso de: %s", _TYPE_NAMES[kind], material.source)
        self._cache[kind] = material
        return material

    def certificate(self) -> CredentialMaterial:
        return self.resolve(CERT)

    def private_key(self) -> CredentialMaterial:
        return self.resolve(KEY)

    def _from_file(self, kind: str) -> CredentialMaterial | None:
        if not self.folder_path:
            return None
        file_path = Path(self.folder_path) / self._filenames[kind]
        try:
            content = file_path.read_bytes()
        except OSError as e:
            logger.warning(
                "Erro ao ler %s do arquivo %s: %s. Tentando variável de ambiente...",
                _TYPE_NAMES[kind], file_path, e,
            )
            return None
        if not content:
            logger.warning("Arquivo %s vazio. Tentando variável de ambiente...", file_path)
            return None
        return CredentialMaterial(
            content=content, provenance=Provenance.FILE, source=f"arquivo ({file_path})"
        )

    def _from_env(self, kind: str) -> CredentialMaterial | None:
        raw = self._env_values[kind]
        if not raw or not str(raw).strip():
            return None
        content, provenance = normalize_env_value(raw)
        if not content:
            return None
        source = f"variável de ambiente ({_ENV_NAMES[kind]})"
        if provenance is Provenance.ENV_BASE64:
            source += " base64-decoded"
        return CredentialMaterial(content=content, provenance=provenance, source=source)
