from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Приводит цену к Decimal с точностью до копейки"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return to_money(unit_price * quantity)


def calculate_total(lines: Iterable) -> Decimal:
    """Сумма quantity * unit_price по позициям (объекты с этими атрибутами)"""
    total = Decimal("0")
    for line in lines:
        total += line.unit_price * line.quantity
    return to_money(total)
