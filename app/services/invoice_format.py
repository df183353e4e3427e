"""
Formata o detalhe bruto de um boleto Cora para os campos que o front usa.

The detail payload is not stable across invoice types and API versions, so
each field is looked up through an ordered list of small extractor
functions; the first one that yields a value wins.
"""
import math
import re
from typing import Any, Callable, Iterable

from app.models.invoice import EnrichedInvoice, PixInfo

Extractor = Callable[[dict], Any]

PIX_PAYLOAD_RE = re.compile(r"br\.gov\.bcb\.pix|000201")
PIX_CHARGE_ID_RE = re.compile(r"cobv?/([0-9a-fA-F-]{8,})")
PIX_KEY_MAX_LEN = 100


def dig(data: Any, *path) -> Any:
    """Safe nested lookup: str parts index dicts, int parts index lists."""
    cur = data
    for part in path:
        if isinstance(part, int):
            if not isinstance(cur, list) or not -len(cur) <= part < len(cur):
                return None
        elif not isinstance(cur, dict):
            return None
        cur = cur[part] if isinstance(part, int) else cur.get(part)
        if cur is None:
            return None
    return cur


def path(*parts) -> Extractor:
    def extract(detail: dict) -> Any:
        return dig(detail, *parts)
    extract.__name__ = "path_" + "_".join(str(p) for p in parts)
    return extract


def _non_blank_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _non_negative_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value < 0 or value != int(value):
        return None
    return int(value)


def first_match(
    extractors: Iterable[Extractor],
    detail: dict,
    accept: Callable[[Any], Any] = _non_blank_str,
) -> Any:
    """Run extractors in order and return the first accepted value (or None)."""
    for extract in extractors:
        value = accept(extract(detail))
        if value is not None:
            return value
    return None


# ── Pix ───────────────────────────────────────────────────────────────────────

PIX_CANDIDATES: list[Extractor] = [
    path("pix", "key"),
    path("pix", "chave"),
    path("pix_key"),
    path("pix", "emv"),
    path("payment", "pix", "key"),
    path("payment", "pix", "chave"),
    path("payments", 0, "pix", "key"),
    path("payments", 0, "pix", "chave"),
    path("payment_data", "pix_key"),
    path("payment", "qrcode", "pix_key"),
    path("payment", "qrcode", "pix", "key"),
    path("payment", "qrcode", "payload"),
    path("payment_options", "pix", "emv"),
    path("payment_options", "pix", "payload"),
]

PIX_EMV_FALLBACKS: list[Extractor] = [
    path("pix", "emv"),
    path("payment", "qrcode", "brcode"),
    path("payment", "qrcode", "text"),
]


def is_pix_payload(value: str) -> bool:
    """A full copy-paste Pix code (EMV/BR Code) rather than a short key."""
    return len(value) > PIX_KEY_MAX_LEN or bool(PIX_PAYLOAD_RE.search(value))


def classify_pix_value(value: str) -> PixInfo:
    if is_pix_payload(value):
        return PixInfo(payload=value)
    return PixInfo(key=value)


def extract_pix(detail: dict | None) -> PixInfo:
    if not detail:
        return PixInfo()

    value = first_match(PIX_CANDIDATES, detail)
    if value is not None:
        return classify_pix_value(value)

    emv = first_match(PIX_EMV_FALLBACKS, detail, accept=lambda v: v if isinstance(v, str) and v else None)
    if emv is not None:
        m = PIX_CHARGE_ID_RE.search(emv)
        return PixInfo(key=m.group(1) if m else None, payload=emv)

    return PixInfo()


# ── Other fields ──────────────────────────────────────────────────────────────

NAME_CANDIDATES = [path("customer", "name"), path("customer_name"), path("services", 0, "name")]
DUE_DATE_CANDIDATES = [path("payment_terms", "due_date"), path("due_date")]
AMOUNT_CANDIDATES = [path("total_amount"), path("services", 0, "amount"), path("amount")]
BARCODE_CANDIDATES = [
    path("payment_options", "bank_slip", "barcode"),
    path("payment_options", "bank_slip", "bar_code"),
]
DIGITABLE_CANDIDATES = [
    path("payment_options", "bank_slip", "digitable"),
    path("payment_options", "bank_slip", "line"),
    path("payment_options", "bank_slip", "our_number"),
]
PDF_CANDIDATES = [
    path("payment_options", "bank_slip", "url"),
    path("payment_options", "bank_slip", "pdf_url"),
]
DOCUMENT_CANDIDATES = [path("customer", "document", "identity")]


def format_brl(amount_cents: int) -> str:
    """12345 -> 'R$ 123,45' (pt-BR)."""
    reais, cents = divmod(amount_cents, 100)
    return f"R$ {reais:,}".replace(",", ".") + f",{cents:02d}"


def format_invoice(detail: dict | None) -> EnrichedInvoice | None:
    if not detail:
        return None

    amount_cents = first_match(AMOUNT_CANDIDATES, detail, accept=_non_negative_int)
    pix = extract_pix(detail)

    return EnrichedInvoice(
        id=_non_blank_str(detail.get("id")),
        student_name=first_match(NAME_CANDIDATES, detail),
        status=_non_blank_str(detail.get("status")),
        due_date=first_match(DUE_DATE_CANDIDATES, detail),
        amount_cents=amount_cents,
        amount=format_brl(amount_cents) if amount_cents is not None else None,
        pix_key=pix.key,
        pix_payload=pix.payload,
        barcode=first_match(BARCODE_CANDIDATES, detail),
        digitable=first_match(DIGITABLE_CANDIDATES, detail),
        pdf_url=first_match(PDF_CANDIDATES, detail),
        customer_document=first_match(DOCUMENT_CANDIDATES, detail),
    )
