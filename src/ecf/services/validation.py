from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lxml import etree

from ecf.models.invoice import ECFData
from ecf.services.xml_writer import XML_DECLARATION
from ecf.utils.file_naming import (
    encf_type,
    is_valid_encf,
    is_valid_rnc,
    parse_file_name,
    validate_file_name,
)
from ecf.utils.validators import (
    validate_additional_tax_code,
    validate_currency_code,
    validate_date,
    validate_email,
    validate_monetary,
    validate_municipality_code,
    validate_phone,
    validate_province_code,
    validate_rnc,
    validate_unit_code,
)

logger = logging.getLogger(__name__)

REQUIRED_ELEMENTS = (
    "Encabezado",
    "Version",
    "TipoeCF",
    "eNCF",
    "FechaEmision",
    "Emisor",
    "RNCEmisor",
)

# Types whose buyer block may be left out
_BUYER_OPTIONAL = frozenset({"41", "43"})
_AMENDING_TYPES = frozenset({"33", "34"})


@dataclass(frozen=True)
class StructureValidation:
    is_valid: bool
    errors: tuple[str, ...] = ()


def _result(errors: list[str]) -> StructureValidation:
    return StructureValidation(is_valid=not errors, errors=tuple(errors))


def validate_xml_structure(xml: str) -> StructureValidation:
    """Shallow syntactic check of a generated e-CF or RFCE document.

    Looks for the XML declaration, an ECF or RFCE root with its closing tag,
    and each element in REQUIRED_ELEMENTS by substring search. This is not
    schema validation; see validate_against_xsd for that.
    """
    errors: list[str] = []

    if XML_DECLARATION not in xml:
        errors.append("Falta declaración XML")

    if "<ECF" in xml:
        root = "ECF"
    elif "<RFCE" in xml:
        root = "RFCE"
    else:
        root = None
        errors.append("Falta elemento raíz ECF o RFCE")

    if root is not None and f"</{root}>" not in xml:
        errors.append("Falta cierre del elemento raíz")

    for element in REQUIRED_ELEMENTS:
        if f"<{element}>" not in xml:
            errors.append(f"Falta elemento requerido: {element}")

    return _result(errors)


def _parse(xml: str) -> etree._Element:
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    return etree.fromstring(xml.encode("utf-8"), parser)


def check_well_formed(xml: str) -> StructureValidation:
    """Parse the document with lxml and report any syntax error."""
    try:
        _parse(xml)
    except etree.XMLSyntaxError as e:
        return _result([f"XML mal formado: {e}"])
    return _result([])


def validate_against_xsd(xml: str, xsd_path: Path) -> StructureValidation:
    """Validate against a DGII XSD supplied by the caller.

    An unreadable or invalid schema is reported as an error, not raised.
    """
    try:
        schema = etree.XMLSchema(etree.parse(str(xsd_path)))
    except (OSError, etree.XMLSyntaxError, etree.XMLSchemaParseError) as e:
        return _result([f"No se pudo cargar el XSD {xsd_path}: {e}"])
    try:
        doc = _parse(xml)
    except etree.XMLSyntaxError as e:
        return _result([f"XML mal formado: {e}"])
    if schema.validate(doc):
        return _result([])
    errors = [f"Línea {err.line}: {err.message}" for err in schema.error_log]
    logger.debug("XSD validation against %s failed with %d errors", xsd_path, len(errors))
    return _result(errors)


def validate_document_file_name(xml: str, file_name: str) -> StructureValidation:
    """Check that a DGII-style file name matches the RNC and e-NCF inside the document.

    Names outside the <RNC><e-NCF>.xml pattern, and documents that do not
    parse, are left to the other checks.
    """
    if not parse_file_name(file_name).is_valid:
        return _result([])
    try:
        root = _parse(xml)
    except etree.XMLSyntaxError:
        return _result([])
    kind = etree.QName(root).localname
    rnc = root.findtext("{*}Encabezado/{*}RNCEmisor") or root.findtext("{*}Emisor/{*}RNCEmisor")
    encf = root.findtext("{*}Encabezado/{*}eNCF")
    if kind not in ("ECF", "RFCE") or not rnc or not encf:
        return _result([])
    if validate_file_name(file_name, kind, rnc, encf):
        return _result([])
    return _result([f"Nombre de archivo {file_name} no corresponde a {rnc}{encf}.xml"])


def _check(errors: list[str], prefix: str, validator, value) -> None:
    try:
        validator(value)
    except ValueError as e:
        errors.append(f"{prefix}: {e}")


def validate_ecf_data(record: ECFData) -> list[str]:
    """Business-rule checks the data-entry layer runs before generation.

    Returns Spanish error messages; an empty list means the record is fine.
    """
    errors: list[str] = []

    if not record.tipo_ecf:
        errors.append("Tipo de e-CF es requerido")
    if not record.encf:
        errors.append("e-NCF es requerido")
    elif not is_valid_encf(record.encf):
        errors.append(f"e-NCF inválido: '{record.encf}'")
    elif record.tipo_ecf and encf_type(record.encf) != record.tipo_ecf:
        errors.append(f"e-NCF {record.encf} no corresponde al tipo {record.tipo_ecf}")
    if not record.fecha_emision:
        errors.append("Fecha de emisión es requerida")
    else:
        _check(errors, "Fecha de emisión", validate_date, record.fecha_emision)
    if record.fecha_vencimiento:
        _check(errors, "Fecha de vencimiento", validate_date, record.fecha_vencimiento)

    emisor = record.emisor
    if not emisor.rnc:
        errors.append("RNC del emisor es requerido")
    elif not is_valid_rnc(emisor.rnc):
        errors.append(f"RNC del emisor inválido: '{emisor.rnc}'")
    if not emisor.razon_social:
        errors.append("Razón social del emisor es requerida")
    if not emisor.direccion:
        errors.append("Dirección del emisor es requerida")
    _check(errors, "Emisor", validate_municipality_code, emisor.municipio)
    _check(errors, "Emisor", validate_province_code, emisor.provincia)

    buyer = record.comprador
    if record.tipo_ecf not in _BUYER_OPTIONAL and (buyer is None or not buyer.has_identity):
        errors.append("Información del comprador es requerida para este tipo de comprobante")
    if buyer is not None:
        if buyer.rnc:
            _check(errors, "Comprador", validate_rnc, buyer.rnc)
        if buyer.municipio:
            _check(errors, "Comprador", validate_municipality_code, buyer.municipio)
        if buyer.provincia:
            _check(errors, "Comprador", validate_province_code, buyer.provincia)
        if buyer.telefono:
            _check(errors, "Comprador", validate_phone, buyer.telefono)
        if buyer.email:
            _check(errors, "Comprador", validate_email, buyer.email)
    if record.tipo_ecf == "46":
        if buyer is None or not buyer.pais:
            errors.append("País del comprador es requerido para exportaciones")
        if record.codigo_moneda == "DOP":
            errors.append("Las exportaciones deben ser en moneda extranjera")
    if record.tipo_ecf == "47" and (buyer is None or not buyer.pais):
        errors.append("País de destino es requerido para pagos al exterior")

    if record.codigo_moneda:
        _check(errors, "Moneda", validate_currency_code, record.codigo_moneda)
    if record.tipo_cambio is not None:
        _check(errors, "Tipo de cambio", validate_monetary, str(record.tipo_cambio))

    if record.tipo_ecf in _AMENDING_TYPES:
        if not record.ncf_modificado:
            errors.append("NCF modificado es requerido para notas de crédito y débito")
        if record.fecha_ncf_modificado:
            _check(errors, "Fecha NCF modificado", validate_date, record.fecha_ncf_modificado)

    if not record.items:
        errors.append("Debe incluir al menos un detalle")
    for index, item in enumerate(record.items, start=1):
        prefix = f"Detalle {index}"
        if item.numero_linea != index:
            errors.append(f"{prefix}: número de línea {item.numero_linea} fuera de secuencia")
        if not item.descripcion:
            errors.append(f"{prefix}: descripción es requerida")
        if item.cantidad <= 0:
            errors.append(f"{prefix}: cantidad debe ser mayor a 0")
        if item.precio_unitario <= 0:
            errors.append(f"{prefix}: precio unitario debe ser mayor a 0")
        if item.descuento < 0:
            errors.append(f"{prefix}: descuento no puede ser negativo")
        if item.unidad_medida:
            _check(errors, prefix, validate_unit_code, item.unidad_medida)
        adicional = item.impuesto_adicional
        if adicional is not None and adicional.codigo:
            _check(errors, prefix, validate_additional_tax_code, adicional.codigo)
        if record.indicador_isc and item.isc is not None and not item.isc.grados_alcohol:
            errors.append(f"{prefix}: grados de alcohol son requeridos para ISC")

    if record.monto_total <= 0:
        errors.append("Monto total debe ser mayor a 0")

    return errors
