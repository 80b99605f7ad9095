from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from ecf.config import SCHEMA_VERSION
from ecf.models.buyer import Buyer
from ecf.models.emitter import Emitter
from ecf.models.line_item import ZERO, LineItem, parse_decimal, parse_optional_decimal


def _opt_str(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class ECFData:
    """One electronic fiscal document, as handed to the XML builder.

    Subtotal/total fields are filled by ecf.services.totals.apply_totals;
    the signature fields by with_signature after external signing.
    """

    tipo_ecf: str
    encf: str
    fecha_emision: str  # as DGII expects it, e.g. DD-MM-YYYY or YYYY-MM-DD
    tipo_ingresos: str
    emisor: Emitter
    items: tuple[LineItem, ...]
    comprador: Buyer | None = None
    fecha_vencimiento: str | None = None

    # Credit/debit note references (33/34)
    ncf_modificado: str | None = None
    fecha_ncf_modificado: str | None = None
    codigo_modificacion: int | None = None
    indicador_nota_credito: str | None = None

    # Foreign currency
    codigo_moneda: str | None = None
    tipo_cambio: Decimal | None = None

    indicador_isc: bool = False

    # Totals
    monto_gravado_18: Decimal = ZERO
    monto_gravado_16: Decimal = ZERO
    monto_gravado_0: Decimal = ZERO
    monto_exento: Decimal = ZERO
    total_itbis_18: Decimal = ZERO
    total_itbis_16: Decimal = ZERO
    total_itbis_retenido: Decimal = ZERO
    total_isr_retenido: Decimal = ZERO
    monto_total: Decimal = ZERO

    # Digital signature
    codigo_seguridad: str | None = None
    fecha_firma: str | None = None

    @property
    def total_itbis(self) -> Decimal:
        return self.total_itbis_18 + self.total_itbis_16

    @property
    def is_signed(self) -> bool:
        return bool(self.codigo_seguridad and self.fecha_firma)

    def with_signature(self, codigo_seguridad: str, fecha_firma: str) -> ECFData:
        """Return a copy carrying the security code and signature timestamp."""
        return replace(self, codigo_seguridad=codigo_seguridad, fecha_firma=fecha_firma)

    @classmethod
    def from_dict(cls, d: dict) -> ECFData:
        """Create an ECFData from a YAML-loaded dict.

        Line numbers default to the 1-based position in the ``items`` list.
        Totals present in the dict are kept as given; call apply_totals to
        derive them from the lines instead.
        """
        comprador = d.get("comprador")
        buyer = Buyer.from_dict(comprador) if comprador else None
        codigo_mod = d.get("codigo_modificacion")
        return cls(
            tipo_ecf=str(d["tipo_ecf"]),
            encf=str(d["encf"]),
            fecha_emision=str(d["fecha_emision"]),
            tipo_ingresos=str(d.get("tipo_ingresos", "01")).zfill(2),
            emisor=Emitter.from_dict(d["emisor"]),
            items=tuple(
                LineItem.from_dict(item, numero_linea=i)
                for i, item in enumerate(d.get("items") or [], start=1)
            ),
            comprador=buyer,
            fecha_vencimiento=_opt_str(d.get("fecha_vencimiento")),
            ncf_modificado=_opt_str(d.get("ncf_modificado")),
            fecha_ncf_modificado=_opt_str(d.get("fecha_ncf_modificado")),
            codigo_modificacion=int(codigo_mod) if codigo_mod not in (None, "") else None,
            indicador_nota_credito=_opt_str(d.get("indicador_nota_credito")),
            codigo_moneda=_opt_str(d.get("codigo_moneda")),
            tipo_cambio=parse_optional_decimal(d.get("tipo_cambio"), "tipo_cambio"),
            indicador_isc=bool(d.get("indicador_isc", False)),
            monto_gravado_18=parse_decimal(d.get("monto_gravado_18", 0), "monto_gravado_18"),
            monto_gravado_16=parse_decimal(d.get("monto_gravado_16", 0), "monto_gravado_16"),
            monto_gravado_0=parse_decimal(d.get("monto_gravado_0", 0), "monto_gravado_0"),
            monto_exento=parse_decimal(d.get("monto_exento", 0), "monto_exento"),
            total_itbis_18=parse_decimal(d.get("total_itbis_18", 0), "total_itbis_18"),
            total_itbis_16=parse_decimal(d.get("total_itbis_16", 0), "total_itbis_16"),
            total_itbis_retenido=parse_decimal(
                d.get("total_itbis_retenido", 0), "total_itbis_retenido"
            ),
            total_isr_retenido=parse_decimal(d.get("total_isr_retenido", 0), "total_isr_retenido"),
            monto_total=parse_decimal(d.get("monto_total", 0), "monto_total"),
            codigo_seguridad=_opt_str(d.get("codigo_seguridad")),
            fecha_firma=_opt_str(d.get("fecha_firma")),
        )


@dataclass(frozen=True)
class ResumenFCE:
    """RFCE summary of a consumer invoice (type 32)."""

    rnc_emisor: str
    encf: str
    fecha_emision: str
    monto_total: Decimal
    total_itbis: Decimal
    cantidad_lineas: int
    fecha_firma: str | None = None
    codigo_seguridad: str | None = None
    version: str = SCHEMA_VERSION

    @classmethod
    def from_record(cls, record: ECFData, version: str = SCHEMA_VERSION) -> ResumenFCE:
        return cls(
            rnc_emisor=record.emisor.rnc,
            encf=record.encf,
            fecha_emision=record.fecha_emision,
            monto_total=record.monto_total,
            total_itbis=record.total_itbis,
            cantidad_lineas=len(record.items),
            fecha_firma=record.fecha_firma,
            codigo_seguridad=record.codigo_seguridad,
            version=version,
        )
