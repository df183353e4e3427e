from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Cora API
    cora_api_base_url: str = ""
    cora_client_id: str = ""
    cora_private_key_passphrase: str = ""

    # Certificado mTLS: pasta em disco (prioridade) ou conteúdo na env
    cora_cert_folder_path: str = ""
    cora_cert_filename: str = "certificate.pem"
    cora_key_filename: str = "private_key.pem"
    coracert: str = ""
    corakey: str = ""

    # Paginação / lotes de detalhe
    cora_page_size: int = 200
    cora_detail_batch_size: int = 20
    cora_page_pause_seconds: float = 0.1
    cora_batch_pause_seconds: float = 0.15

    # Timeout (s) for every Cora request, also used by the single-invoice lookup
    cora_timeout_seconds: float = 20.0

    # Token nominally lives 60 min; cache it for less
    cora_token_ttl_minutes: int = 50

    # Wide window so the provider does not filter by date
    cora_list_start: str = "2020-01-01"
    cora_list_end: str = "2030-12-31"

    # "Today" for overdue classification
    timezone: str = "America/Sao_Paulo"

    # CORS origins (comma-separated). Empty means any origin.
    frontend_url: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
