"""
Funções para normalizar e validar dados de entrada do usuário.
"""
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")


def digits_only(raw: Optional[str]) -> str:
    """
    Remove tudo que não é dígito.
    """
    return re.sub(r"\D", "", raw or "")


def is_valid_cpf(raw: Optional[str]) -> bool:
    """
    Valida CPF com os dois dígitos verificadores (módulo 11).

    Aceita formatos como "123.456.789-09" ou "12345678909".
    """
    digits = digits_only(raw)

    # Deve ter exatamente 11 dígitos
    if len(digits) != 11:
        return False

    # Todos os dígitos iguais (ex: 111.111.111-11) passam no cálculo, mas são inválidos
    if len(set(digits)) == 1:
        return False

    for position in (9, 10):
        total = sum(int(digits[i]) * (position + 1 - i) for i in range(position))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != int(digits[position]):
            return False

    return True


def format_cpf(raw: Optional[str]) -> str:
    """
    Formata como 000.000.000-00. Entradas incompletas voltam só com os dígitos.
    """
    digits = digits_only(raw)
    if len(digits) != 11:
        return digits
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def is_valid_email(email: Optional[str]) -> bool:
    """
    Exatamente um "@", parte local não vazia e domínio com pelo menos um ".".
    """
    email = (email or "").strip()
    if email.count("@") != 1:
        return False
    local, domain = email.split("@")
    if not local or "." not in domain:
        return False
    return all(label for label in domain.split("."))


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """
    Extrai dígitos de um telefone brasileiro e formata com DDD.

    Retorna None se tiver menos de 10 dígitos.

    Exemplos:
        "(61) 99938-0969" → "+55 61 99938-0969"
        "6133334444" → "+55 61 3333-4444"
    """
    digits = digits_only(raw)

    # Remove DDI 55 se vier junto
    if digits.startswith("55") and len(digits) > 11:
        digits = digits[2:]

    if len(digits) < 10:
        return None

    ddd = digits[:2]
    num = digits[2:]
    split = len(num) - 4
    return f"+55 {ddd} {num[:split]}-{num[split:]}"


def parse_birth_date(raw: Optional[str]) -> Optional[date]:
    """
    Converte data de nascimento em ISO (1990-05-20) ou brasileiro (20/05/1990).
    """
    text = (raw or "").strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def calculate_age(birth_date: date, reference: Optional[date] = None) -> int:
    """
    Idade em anos completos na data de referência (hoje, se omitida).
    """
    reference = reference or date.today()
    age = reference.year - birth_date.year
    if (reference.month, reference.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def format_brl(amount: Decimal) -> str:
    """
    Formata valor em reais: Decimal("1234.5") → "R$ 1.234,50".
    Único ponto onde o valor é arredondado para exibição.
    """
    quantized = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    text = f"{quantized:,.2f}"
    return "R$ " + text.replace(",", "_").replace(".", ",").replace("_", ".")
