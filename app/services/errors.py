"""
Erros da integração com a Cora.

Construction-time problems (ConfigurationError, CredentialUnavailable) are
fatal. AuthenticationFailed and UpstreamRequestFailed abort the request.
DetailFetchFailed is absorbed per item by the enrichment step.
"""


class CoraError(Exception):
    """Base for every Cora integration failure."""


class ConfigurationError(CoraError):
    pass


class CredentialUnavailable(CoraError):
    pass


class _HttpFailure(CoraError):
    def __init__(self, message: str, status_code: int | None = None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (status={self.status_code})"
        return base


class AuthenticationFailed(_HttpFailure):
    pass


class UpstreamRequestFailed(_HttpFailure):
    pass


class DetailFetchFailed(_HttpFailure):
    def __init__(self, invoice_id: str, message: str, status_code: int | None = None, body=None):
        super().__init__(message, status_code=status_code, body=body)
        self.invoice_id = invoice_id
