"""
Validação de CPF (11 dígitos + dígitos verificadores).
"""
import logging
import re

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def limpar(cpf: str | None) -> str:
    """Remove pontos, traços e qualquer outro caractere não numérico."""
    return _NON_DIGITS.sub("", cpf or "")


def _check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(d) * (weight - i) for i, d in enumerate(digits))
    rest = (total * 10) % 11
    return 0 if rest == 10 else rest


def validar(cpf: str | None) -> bool:
    if not cpf:
        logger.warning("CPF não fornecido para validação.")
        return False

    digits = limpar(cpf)
    if len(digits) != 11:
        logger.warning('CPF "%s" inválido: deve ter 11 dígitos.', cpf)
        return False

    if len(set(digits)) == 1:
        logger.warning('CPF "%s" inválido: todos os dígitos são iguais.', cpf)
        return False

    if _check_digit(digits[:9]) != int(digits[9]) or _check_digit(digits[:10]) != int(digits[10]):
        logger.warning('CPF "%s" inválido: dígitos verificadores não conferem.', cpf)
        return False

    return True
