"""ITBIS bracket aggregation for e-CF line items.

All arithmetic is Decimal. Line amounts are rounded to cents before they
are bracketed, and each bracket's tax is rounded once, so the printed
MontoItem values always add up to the printed subtotals.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal

from ecf.config import ITBIS_RATES
from ecf.models.invoice import ECFData
from ecf.models.line_item import TAX_0, TAX_16, TAX_18, TAX_EXEMPT, ZERO, LineItem
from ecf.utils.formatters import round_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnrecognizedTaxTag:
    """A line whose tax tag matched no bracket; its amount is in no total."""

    numero_linea: int
    tasa_itbis: str
    amount: Decimal


@dataclass(frozen=True)
class Totals:
    monto_gravado_18: Decimal = ZERO
    monto_gravado_16: Decimal = ZERO
    monto_gravado_0: Decimal = ZERO
    monto_exento: Decimal = ZERO
    total_itbis_18: Decimal = ZERO
    total_itbis_16: Decimal = ZERO
    total_itbis_retenido: Decimal = ZERO
    total_isr_retenido: Decimal = ZERO
    monto_total: Decimal = ZERO
    unrecognized: tuple[UnrecognizedTaxTag, ...] = ()

    @property
    def brackets_total(self) -> Decimal:
        return self.monto_gravado_18 + self.monto_gravado_16 + self.monto_gravado_0 + self.monto_exento

    @property
    def total_itbis(self) -> Decimal:
        return self.total_itbis_18 + self.total_itbis_16


def calculate_totals(items: Iterable[LineItem]) -> Totals:
    """Aggregate line items into the four ITBIS brackets and the grand total.

    Never rejects input. Lines with a tag outside {18, 16, 0, E} are left
    out of every bracket and reported in ``Totals.unrecognized``.
    """
    brackets = {TAX_18: ZERO, TAX_16: ZERO, TAX_0: ZERO, TAX_EXEMPT: ZERO}
    itbis_retenido = ZERO
    isr_retenido = ZERO
    unrecognized: list[UnrecognizedTaxTag] = []

    for item in items:
        amount = item.amount
        if item.tasa_itbis in brackets:
            brackets[item.tasa_itbis] += amount
        else:
            logger.warning(
                "Line %s has unrecognized tax tag %r; amount %s left out of totals",
                item.numero_linea,
                item.tasa_itbis,
                amount,
            )
            unrecognized.append(UnrecognizedTaxTag(item.numero_linea, item.tasa_itbis, amount))
        itbis_retenido += item.itbis_retenido
        isr_retenido += item.isr_retenido

    itbis_18 = round_amount(brackets[TAX_18] * ITBIS_RATES[TAX_18])
    itbis_16 = round_amount(brackets[TAX_16] * ITBIS_RATES[TAX_16])
    total = (
        sum(brackets.values(), ZERO)
        + itbis_18
        + itbis_16
        - itbis_retenido
        - isr_retenido
    )

    return Totals(
        monto_gravado_18=brackets[TAX_18],
        monto_gravado_16=brackets[TAX_16],
        monto_gravado_0=brackets[TAX_0],
        monto_exento=brackets[TAX_EXEMPT],
        total_itbis_18=itbis_18,
        total_itbis_16=itbis_16,
        total_itbis_retenido=itbis_retenido,
        total_isr_retenido=isr_retenido,
        monto_total=total,
        unrecognized=tuple(unrecognized),
    )


def apply_totals(record: ECFData) -> tuple[ECFData, Totals]:
    """Return a copy of ``record`` with its subtotal/total fields recomputed."""
    totals = calculate_totals(record.items)
    updated = replace(
        record,
        monto_gravado_18=totals.monto_gravado_18,
        monto_gravado_16=totals.monto_gravado_16,
        monto_gravado_0=totals.monto_gravado_0,
        monto_exento=totals.monto_exento,
        total_itbis_18=totals.total_itbis_18,
        total_itbis_16=totals.total_itbis_16,
        total_itbis_retenido=totals.total_itbis_retenido,
        total_isr_retenido=totals.total_isr_retenido,
        monto_total=totals.monto_total,
    )
    return updated, totals
