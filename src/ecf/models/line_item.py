from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from ecf.services.exceptions import RecordError
from ecf.utils.formatters import round_amount

TAX_18 = "18"
TAX_16 = "16"
TAX_0 = "0"
TAX_EXEMPT = "E"

TAX_TAGS = frozenset({TAX_18, TAX_16, TAX_0, TAX_EXEMPT})

# DGII IndicadorFacturacion; 0 = no facturable
_BILLING_INDICATORS = {TAX_18: 1, TAX_16: 2, TAX_0: 3, TAX_EXEMPT: 4}

ZERO = Decimal("0")


def parse_decimal(value, field_name: str) -> Decimal:
    """Parse a YAML/JSON number into Decimal, going through str to avoid float noise."""
    try:
        d = Decimal(str(value))
        if not d.is_finite():
            raise InvalidOperation
    except InvalidOperation:
        raise RecordError(f"{field_name}: valor numérico inválido: '{value}'") from None
    return d


def parse_optional_decimal(value, field_name: str) -> Decimal | None:
    if value is None or value == "":
        return None
    return parse_decimal(value, field_name)


def normalize_tax_tag(value) -> str:
    """Canonicalize a tax-rate tag. Unknown tags are returned unchanged."""
    tag = str(value).strip()
    if tag.lower() in ("e", "exento"):
        return TAX_EXEMPT
    return tag


@dataclass(frozen=True)
class SelectiveTax:
    """ISC (Impuesto Selectivo al Consumo) sub-block of a line."""

    grados_alcohol: Decimal | None = None
    cantidad_referencia: Decimal | None = None
    subcantidad: Decimal | None = None
    precio_unitario_referencia: Decimal | None = None
    monto_especifico: Decimal | None = None
    monto_ad_valorem: Decimal | None = None

    @property
    def is_present(self) -> bool:
        """Mirrors the <ISC> trigger: degrees or either ISC amount, zero counts as absent."""
        return bool(self.grados_alcohol or self.monto_especifico or self.monto_ad_valorem)

    @classmethod
    def from_dict(cls, d: dict) -> SelectiveTax:
        return cls(
            grados_alcohol=parse_optional_decimal(d.get("grados_alcohol"), "grados_alcohol"),
            cantidad_referencia=parse_optional_decimal(
                d.get("cantidad_referencia"), "cantidad_referencia"
            ),
            subcantidad=parse_optional_decimal(d.get("subcantidad"), "subcantidad"),
            precio_unitario_referencia=parse_optional_decimal(
                d.get("precio_unitario_referencia"), "precio_unitario_referencia"
            ),
            monto_especifico=parse_optional_decimal(d.get("monto_especifico"), "monto_especifico"),
            monto_ad_valorem=parse_optional_decimal(d.get("monto_ad_valorem"), "monto_ad_valorem"),
        )


@dataclass(frozen=True)
class AdditionalTax:
    codigo: str | None = None
    tasa: Decimal | None = None
    monto: Decimal | None = None

    @property
    def is_present(self) -> bool:
        return bool(self.codigo or self.monto)

    @classmethod
    def from_dict(cls, d: dict) -> AdditionalTax:
        codigo = d.get("codigo")
        return cls(
            codigo=str(codigo) if codigo not in (None, "") else None,
            tasa=parse_optional_decimal(d.get("tasa"), "tasa"),
            monto=parse_optional_decimal(d.get("monto"), "monto"),
        )


@dataclass(frozen=True)
class LineItem:
    numero_linea: int
    descripcion: str
    cantidad: Decimal
    precio_unitario: Decimal
    tasa_itbis: str
    tipo_item: str = "bien"  # bien | servicio
    unidad_medida: str | None = None
    descuento: Decimal = ZERO
    indicador_facturacion: int | None = None
    itbis_retenido: Decimal = ZERO
    isr_retenido: Decimal = ZERO
    isc: SelectiveTax | None = None
    impuesto_adicional: AdditionalTax | None = None

    @property
    def amount(self) -> Decimal:
        """MontoItem: quantity x unit price - discount, rounded half-up to cents."""
        return round_amount(self.cantidad * self.precio_unitario - self.descuento)

    @property
    def billing_indicator(self) -> int:
        if self.indicador_facturacion is not None:
            return self.indicador_facturacion
        return _BILLING_INDICATORS.get(self.tasa_itbis, 0)

    @classmethod
    def from_dict(cls, d: dict, numero_linea: int | None = None) -> LineItem:
        """Create a LineItem from a YAML-loaded dict.

        ``numero_linea`` is used when the dict does not carry its own line number.
        """
        isc = d.get("isc")
        adicional = d.get("impuesto_adicional")
        indicador = d.get("indicador_facturacion")
        unidad = d.get("unidad_medida")
        return cls(
            numero_linea=int(d.get("numero_linea", numero_linea or 0)),
            descripcion=str(d["descripcion"]),
            cantidad=parse_decimal(d["cantidad"], "cantidad"),
            precio_unitario=parse_decimal(d["precio_unitario"], "precio_unitario"),
            tasa_itbis=normalize_tax_tag(d.get("tasa_itbis", TAX_18)),
            tipo_item="servicio" if d.get("tipo_item") == "servicio" else "bien",
            unidad_medida=str(unidad) if unidad not in (None, "") else None,
            descuento=parse_decimal(d.get("descuento", 0), "descuento"),
            indicador_facturacion=int(indicador) if indicador is not None else None,
            itbis_retenido=parse_decimal(d.get("itbis_retenido", 0), "itbis_retenido"),
            isr_retenido=parse_decimal(d.get("isr_retenido", 0), "isr_retenido"),
            isc=SelectiveTax.from_dict(isc) if isc else None,
            impuesto_adicional=AdditionalTax.from_dict(adicional) if adicional else None,
        )
