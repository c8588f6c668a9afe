"""
Helpers de montos: toda la aritmética de dinero se hace con Decimal a centavos
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value, fallback: Decimal = ZERO) -> Decimal:
    """Convierte int/float/str/Decimal a Decimal redondeado a centavos"""
    if value is None:
        return fallback
    try:
        if isinstance(value, Decimal):
            amount = value
        else:
            # str() evita arrastrar el error binario de los float
            amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return fallback
    if not amount.is_finite():
        return fallback
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable) -> Decimal:
    total = ZERO
    for value in values:
        total += money(value)
    return total.quantize(CENTS, rounding=ROUND_HALF_UP)


def as_float(value) -> float:
    """Para serializar en respuestas/plantillas"""
    return float(money(value))
