from __future__ import annotations

from decimal import Decimal
from urllib.parse import urlencode

from ecf.config import ECF_NS, RFCE_NS, SCHEMA_VERSION, SUBTOTAL_TYPES, XSI_NS, get_qr_base_url
from ecf.models.invoice import ECFData, ResumenFCE
from ecf.models.line_item import TAX_0, TAX_16, TAX_18, TAX_EXEMPT, LineItem
from ecf.services.xml_writer import XMLWriter
from ecf.utils.formatters import format_amount

ZERO_AMOUNT = "0.00"


def _amount(value: Decimal | None, places: int = 2) -> str | None:
    """Format an optional number; zero and None are treated as absent."""
    if not value:
        return None
    return format_amount(value, places)


def _root_attrs(ns: str, schema_file: str) -> dict[str, str]:
    return {
        "xmlns": ns,
        "xmlns:xsi": XSI_NS,
        "xsi:schemaLocation": f"{ns} {schema_file}",
    }


def _write_item(w: XMLWriter, item: LineItem) -> None:
    with w.element("Item"):
        w.field("NumeroLinea", item.numero_linea)
        w.field("DescripcionItem", item.descripcion)
        w.field("TipoItem", "1" if item.tipo_item == "bien" else "2")
        w.field("CantidadItem", format_amount(item.cantidad))
        w.field("UnidadMedida", item.unidad_medida)
        w.field("PrecioUnitarioItem", format_amount(item.precio_unitario))
        if item.descuento > 0:
            w.field("DescuentoItem", format_amount(item.descuento))
        w.field("MontoItem", format_amount(item.amount))

        isc = item.isc
        if isc is not None and isc.is_present:
            with w.element("ISC"):
                w.field("GradosAlcohol", _amount(isc.grados_alcohol, 1))
                w.field("CantidadReferencia", _amount(isc.cantidad_referencia))
                w.field("Subcantidad", _amount(isc.subcantidad))
                w.field("PrecioUnitarioReferencia", _amount(isc.precio_unitario_referencia))
                w.field("MontoImpuestoSelectivoEspecifico", _amount(isc.monto_especifico))
                w.field("MontoImpuestoSelectivoAdValorem", _amount(isc.monto_ad_valorem))

        extra = item.impuesto_adicional
        if extra is not None and extra.is_present:
            with w.element("ImpuestosAdicionales"):
                if extra.codigo:
                    w.field("CodigoImpuestoAdicional", extra.codigo)
                    w.field("TasaImpuestoAdicional", _amount(extra.tasa))
                w.field("OtrosImpuestosAdicionales", _amount(extra.monto))

        w.field("IndicadorFacturacion", item.billing_indicator)


def generate_ecf_xml(data: ECFData) -> str:
    """Serialize an e-CF record to the DGII XML document.

    Element order is fixed by the schema. Optional blocks are omitted
    entirely when their trigger is absent.
    """
    w = XMLWriter(
        "ECF",
        _root_attrs(ECF_NS, f"e-CF_{data.tipo_ecf}_v{SCHEMA_VERSION}.xsd"),
    )

    with w.element("Encabezado"):
        w.field("Version", SCHEMA_VERSION)
        w.field("TipoeCF", data.tipo_ecf)
        w.field("eNCF", data.encf)
        w.field("FechaEmision", data.fecha_emision)
        w.field("FechaVencimiento", data.fecha_vencimiento)
        w.field("IndicadorEnvioPrimerEmail", "0")
        w.field("IndicadorMontoGravado", "1")
        w.field("TipoIngresos", data.tipo_ingresos)
        if data.ncf_modificado:
            w.field("NCFModificado", data.ncf_modificado)
            w.field("FechaNCFModificado", data.fecha_ncf_modificado)
            if data.codigo_modificacion:
                w.field("CodigoModificacion", str(data.codigo_modificacion).zfill(2))
            w.field("IndicadorNotaCredito", data.indicador_nota_credito)

    emisor = data.emisor
    with w.element("Emisor"):
        w.field("RNCEmisor", emisor.rnc)
        w.field("RazonSocialEmisor", emisor.razon_social)
        w.field("NombreComercial", emisor.nombre_comercial)
        w.field("DireccionEmisor", emisor.direccion)
        w.field("MunicipioEmisor", emisor.municipio)
        w.field("ProvinciaEmisor", emisor.provincia)

    buyer = data.comprador
    if buyer is not None and buyer.has_identity:
        with w.element("Comprador"):
            w.field("RNCComprador", buyer.rnc)
            w.field("IdentificadorExtranjero", buyer.id_extranjero)
            w.field("RazonSocialComprador", buyer.razon_social)
            w.field("DireccionComprador", buyer.direccion)
            w.field("MunicipioComprador", buyer.municipio)
            w.field("ProvinciaComprador", buyer.provincia)
            if buyer.telefono:
                with w.element("ContactoComprador"):
                    w.field("TelefonoComprador", buyer.telefono)
                    w.field("EmailComprador", buyer.email)

    if data.codigo_moneda and data.tipo_cambio:
        with w.element("OtraMoneda"):
            w.field("TipoMoneda", data.codigo_moneda)
            w.field("TipoCambio", format_amount(data.tipo_cambio, 4))

    with w.element("DetallesItems"):
        for item in data.items:
            _write_item(w, item)

    brackets = [
        (TAX_18, data.monto_gravado_18, data.total_itbis_18),
        (TAX_16, data.monto_gravado_16, data.total_itbis_16),
        (TAX_0, data.monto_gravado_0, None),
        (TAX_EXEMPT, data.monto_exento, None),
    ]
    with w.element("Subtotales"):
        for tag, subtotal, itbis in brackets:
            if subtotal > 0:
                with w.element("Subtotal"):
                    w.field("TipoSubtotal", SUBTOTAL_TYPES[tag])
                    w.field("SubtotalMontoGravado", format_amount(subtotal))
                    w.field("SubtotalITBIS", format_amount(itbis) if itbis is not None else ZERO_AMOUNT)

    w.field("MontoTotal", format_amount(data.monto_total))

    if data.total_itbis_retenido > 0 or data.total_isr_retenido > 0:
        with w.element("Retenciones"):
            if data.total_itbis_retenido > 0:
                w.field("RetencionITBIS", format_amount(data.total_itbis_retenido))
            if data.total_isr_retenido > 0:
                w.field("RetencionISR", format_amount(data.total_isr_retenido))

    if data.is_signed:
        with w.element("FirmaDigital"):
            w.field("CodigoSeguridad", data.codigo_seguridad)
            w.field("FechaFirma", data.fecha_firma)

    return w.tostring()


def generate_resumen_xml(data: ResumenFCE) -> str:
    """Serialize the RFCE summary document (a subset of the full e-CF)."""
    w = XMLWriter("RFCE", _root_attrs(RFCE_NS, f"RFCE_v{data.version}.xsd"))
    with w.element("Encabezado"):
        w.field("Version", data.version)
        w.field("RNCEmisor", data.rnc_emisor)
        w.field("eNCF", data.encf)
        w.field("FechaEmision", data.fecha_emision)
        w.field("MontoTotal", format_amount(data.monto_total))
        w.field("MontoTotalITBIS", format_amount(data.total_itbis))
        w.field("FechaFirmaDigital", data.fecha_firma)
        w.field("CodigoSeguridadeCF", data.codigo_seguridad)
        w.field("CantidadLineasDetalle", data.cantidad_lineas)
    return w.tostring()


def generate_qr_url(data: ECFData, is_rfce: bool = False) -> str:
    """Build the DGII verification URL rendered as the document's QR code.

    Uses standard query-string encoding, not the QR payload catalog in
    ecf.services.encoding.
    """
    params = {
        "rnc": data.emisor.rnc,
        "encf": data.encf,
        "fecha": data.fecha_emision,
        "monto": format_amount(data.monto_total),
        "tipo": "RFCE" if is_rfce else "ECF",
    }
    if data.codigo_seguridad:
        params["codigo"] = data.codigo_seguridad
    return f"{get_qr_base_url()}?{urlencode(params)}"
