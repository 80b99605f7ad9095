from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation


def _digits(value: str) -> str:
    return re.sub(r"[-\s]", "", value)


def validate_monetary(value: str) -> str:
    """Validate and normalize a monetary value string.

    Returns the value with exactly 2 decimal places (DGII XML requirement).
    Raises ValueError for invalid or non-positive values.
    """
    try:
        d = Decimal(value)
        if not d.is_finite():
            raise InvalidOperation
        if d <= 0:
            raise ValueError(f"Monto debe ser positivo: '{value}'")
    except InvalidOperation:
        raise ValueError(f"Valor numérico inválido: '{value}'") from None
    return f"{d:.2f}"


def validate_date(value: str) -> str:
    """Validate a date as DD-MM-YYYY (DGII) or YYYY-MM-DD. Returns the value unchanged."""
    try:
        date.fromisoformat(value)
    except ValueError:
        try:
            datetime.strptime(value, "%d-%m-%Y")
        except ValueError:
            raise ValueError(f"Fecha inválida: '{value}'. Use DD-MM-AAAA o AAAA-MM-DD.") from None
    return value


def validate_rnc(value: str) -> str:
    """Validate an RNC: 9 to 11 digits, dashes and spaces ignored. Returns the digits."""
    digits = _digits(value)
    if not re.fullmatch(r"\d{9,11}", digits):
        raise ValueError("RNC: debe tener entre 9 y 11 dígitos")
    return digits


def validate_province_code(value: str) -> str:
    if not re.fullmatch(r"\d{6}", value):
        raise ValueError("Provincia: el código debe tener 6 dígitos")
    return value


def validate_municipality_code(value: str) -> str:
    if not re.fullmatch(r"\d{6}", value):
        raise ValueError("Municipio: el código debe tener 6 dígitos")
    return value


def validate_unit_code(value: str) -> str:
    """Validate a DGII unit-of-measure code: 1 or 2 digits."""
    if not re.fullmatch(r"\d{1,2}", value):
        raise ValueError("Unidad de medida: el código debe tener 1 o 2 dígitos")
    return value


def validate_additional_tax_code(value: str) -> str:
    if not re.fullmatch(r"\d{3}", value):
        raise ValueError("Impuesto adicional: el código debe tener 3 dígitos")
    return value


def validate_currency_code(value: str) -> str:
    """Validate a currency code: 3 uppercase letters (ISO 4217)."""
    if not re.fullmatch(r"[A-Z]{3}", value):
        raise ValueError("Moneda: debe tener 3 letras mayúsculas (ISO 4217)")
    return value


def validate_email(value: str) -> str:
    if not re.fullmatch(r"[^\s@]+@[^\s@]+\.[^\s@]+", value):
        raise ValueError(f"Correo electrónico inválido: '{value}'")
    return value


def validate_phone(value: str) -> str:
    """Validate a phone number: 7 to 15 digits, spaces, dashes, + or parentheses."""
    if not re.fullmatch(r"[0-9\-\s+()]{7,15}", value):
        raise ValueError(f"Teléfono inválido: '{value}'")
    return value
