"""DGII file names and e-NCF identifiers.

File name format: RNC + e-NCF + ".xml". The RNC is the issuer's for ECF,
ANECF and RFCE documents and the buyer's for ACECF and ARECF.
e-NCF format: "E" + 2-digit document type + 10-digit sequence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

ISSUER_NAMED = frozenset({"ECF", "ANECF", "RFCE"})
BUYER_NAMED = frozenset({"ACECF", "ARECF"})

_ENCF_RE = re.compile(r"E\d{12}")
_RNC_RE = re.compile(r"\d{9,11}")
_FILE_RE = re.compile(r"(\d{9,11})(E\d{12})")


@dataclass(frozen=True)
class ParsedFileName:
    rnc: str
    encf: str
    is_valid: bool


def generate_file_name(
    tipo_xml: str,
    rnc_emisor: str,
    encf: str,
    rnc_comprador: str | None = None,
) -> str:
    """Build the DGII file name for a document.

    Raises ValueError for an unknown document kind, or when a buyer-named
    kind is requested without the buyer RNC.
    """
    if tipo_xml in ISSUER_NAMED:
        return f"{rnc_emisor}{encf}.xml"
    if tipo_xml in BUYER_NAMED:
        if not rnc_comprador:
            raise ValueError(
                "RNC Comprador es requerido para Aprobación Comercial y Acuse de Recibo"
            )
        return f"{rnc_comprador}{encf}.xml"
    raise ValueError(f"Tipo de XML no válido: {tipo_xml}")


def validate_file_name(
    file_name: str,
    tipo_xml: str,
    rnc_emisor: str,
    encf: str,
    rnc_comprador: str | None = None,
) -> bool:
    return file_name == generate_file_name(tipo_xml, rnc_emisor, encf, rnc_comprador)


def parse_file_name(file_name: str) -> ParsedFileName:
    """Split "<RNC><e-NCF>.xml" into its parts."""
    stem = re.sub(r"\.xml$", "", file_name, flags=re.IGNORECASE)
    match = _FILE_RE.fullmatch(stem)
    if not match:
        return ParsedFileName(rnc="", encf="", is_valid=False)
    return ParsedFileName(rnc=match.group(1), encf=match.group(2), is_valid=True)


def is_valid_encf(encf: str) -> bool:
    return bool(_ENCF_RE.fullmatch(encf))


def is_valid_rnc(rnc: str) -> bool:
    return bool(_RNC_RE.fullmatch(rnc))


def encf_type(encf: str) -> str | None:
    """Document type code ("31", "32", ...) of an e-NCF, or None if malformed."""
    if not is_valid_encf(encf):
        return None
    return encf[1:3]
