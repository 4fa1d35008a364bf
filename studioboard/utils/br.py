# studioboard/utils/br.py
import re
from typing import Optional


def only_digits(s: Optional[str]) -> str:
    return re.sub(r"\D+", "", s or "")


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def format_cpf(value: Optional[str]) -> Optional[str]:
    """'12345678901' -> '123.456.789-01'. Valor fora do padrão fica como veio."""
    value = blank_to_none(value)
    digits = only_digits(value)
    if len(digits) != 11:
        return value
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_cnpj(value: Optional[str]) -> Optional[str]:
    value = blank_to_none(value)
    digits = only_digits(value)
    if len(digits) != 14:
        return value
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"
