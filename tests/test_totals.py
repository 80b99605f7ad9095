from __future__ import annotations

import logging
from decimal import Decimal

from ecf.models.invoice import ECFData
from ecf.models.line_item import LineItem
from ecf.services.totals import UnrecognizedTaxTag, apply_totals, calculate_totals


def _item(n: int, cantidad, precio, tasa: str, **kw) -> LineItem:
    return LineItem(
        numero_linea=n,
        descripcion=f"Item {n}",
        cantidad=Decimal(str(cantidad)),
        precio_unitario=Decimal(str(precio)),
        tasa_itbis=tasa,
        **kw,
    )


class TestCalculateTotals:
    def test_consumer_invoice_scenario(self):
        totals = calculate_totals([_item(1, 2, "500.00", "18")])
        assert totals.monto_gravado_18 == Decimal("1000.00")
        assert totals.total_itbis_18 == Decimal("180.00")
        assert totals.monto_total == Decimal("1180.00")
        assert totals.unrecognized == ()

    def test_all_brackets(self):
        totals = calculate_totals(
            [
                _item(1, 1, 100, "18"),
                _item(2, 1, 200, "16"),
                _item(3, 1, 300, "0"),
                _item(4, 1, 400, "E"),
            ]
        )
        assert totals.monto_gravado_18 == Decimal("100.00")
        assert totals.monto_gravado_16 == Decimal("200.00")
        assert totals.monto_gravado_0 == Decimal("300.00")
        assert totals.monto_exento == Decimal("400.00")
        assert totals.total_itbis_18 == Decimal("18.00")
        assert totals.total_itbis_16 == Decimal("32.00")
        assert totals.monto_total == Decimal("1050.00")

    def test_discount_reduces_line_amount(self):
        totals = calculate_totals([_item(1, 3, "100", "18", descuento=Decimal("50"))])
        assert totals.monto_gravado_18 == Decimal("250.00")
        assert totals.total_itbis_18 == Decimal("45.00")

    def test_retentions_subtracted(self):
        totals = calculate_totals(
            [
                _item(1, 1, 1000, "18", itbis_retenido=Decimal("54.00")),
                _item(2, 1, 500, "E", isr_retenido=Decimal("50.00")),
            ]
        )
        assert totals.total_itbis_retenido == Decimal("54.00")
        assert totals.total_isr_retenido == Decimal("50.00")
        assert totals.monto_total == Decimal("1000") + Decimal("180") + Decimal("500") - Decimal(
            "104"
        )

    def test_unrecognized_tag_excluded(self, caplog):
        with caplog.at_level(logging.WARNING, logger="ecf.services.totals"):
            totals = calculate_totals([_item(1, 1, 100, "18"), _item(2, 1, 999, "12")])
        assert totals.brackets_total == Decimal("100.00")
        assert totals.monto_total == Decimal("118.00")
        assert totals.unrecognized == (UnrecognizedTaxTag(2, "12", Decimal("999.00")),)
        assert "unrecognized tax tag" in caplog.text

    def test_no_penny_drift(self):
        items = [_item(i, 1, "0.10", "18") for i in range(1, 101)]
        totals = calculate_totals(items)
        assert totals.monto_gravado_18 == Decimal("10.00")
        assert totals.total_itbis_18 == Decimal("1.80")
        assert totals.monto_total == Decimal("11.80")

    def test_tax_rounded_half_up(self):
        # 0.25 * 0.18 = 0.045 -> 0.05
        totals = calculate_totals([_item(1, 1, "0.25", "18")])
        assert totals.total_itbis_18 == Decimal("0.05")

    def test_bracket_conservation(self):
        items = [
            _item(1, "1.5", "33.33", "18"),
            _item(2, "7", "0.99", "16", descuento=Decimal("0.50")),
            _item(3, "2.25", "10", "0"),
            _item(4, "1", "12.345", "E"),
        ]
        totals = calculate_totals(items)
        assert totals.brackets_total == sum(i.amount for i in items)
        assert totals.monto_total == (
            totals.brackets_total
            + totals.total_itbis
            - totals.total_itbis_retenido
            - totals.total_isr_retenido
        )

    def test_empty(self):
        totals = calculate_totals([])
        assert totals.monto_total == Decimal("0")


class TestApplyTotals:
    def test_replaces_only_totals(self, record_dict):
        original = ECFData.from_dict(record_dict)
        updated, totals = apply_totals(original)
        assert updated.monto_total == Decimal("1180.00")
        assert updated.total_itbis == Decimal("180.00")
        assert updated.items == original.items
        assert updated.encf == original.encf
        # the input record is untouched
        assert original.monto_total == Decimal("0")
        assert totals.monto_total == updated.monto_total
