from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from ecf.models.invoice import ECFData, ResumenFCE
from ecf.services.ecf_builder import generate_ecf_xml, generate_qr_url, generate_resumen_xml
from ecf.services.exceptions import RecordError
from ecf.services.totals import Totals, apply_totals
from ecf.services.validation import StructureValidation, validate_ecf_data, validate_xml_structure
from ecf.utils.file_naming import generate_file_name

logger = logging.getLogger(__name__)


@dataclass
class PreparedECF:
    """Everything produced for one record, ready for signing or saving."""

    record: ECFData
    totals: Totals
    xml: str
    structure: StructureValidation
    qr_url: str
    file_name: str
    resumen: bool = False


def prepare(record: ECFData, resumen: bool = False) -> PreparedECF:
    """Compute totals, check business rules, and generate the XML.

    Raises RecordError when business validation fails. Structural findings
    on the generated XML are returned, not raised.
    """
    record, totals = apply_totals(record)

    errors = validate_ecf_data(record)
    if errors:
        raise RecordError(f"e-CF {record.encf or '?'} no es válido", errors)

    if resumen:
        xml = generate_resumen_xml(ResumenFCE.from_record(record))
    else:
        xml = generate_ecf_xml(record)

    structure = validate_xml_structure(xml)
    if not structure.is_valid:
        # The fixed required-element list targets the full e-CF; RFCE never has TipoeCF/Emisor
        logger.warning(
            "Structure check for %s %s: %s",
            "RFCE" if resumen else "ECF",
            record.encf,
            "; ".join(structure.errors),
        )

    return PreparedECF(
        record=record,
        totals=totals,
        xml=xml,
        structure=structure,
        qr_url=generate_qr_url(record, is_rfce=resumen),
        file_name=generate_file_name("RFCE" if resumen else "ECF", record.emisor.rnc, record.encf),
        resumen=resumen,
    )


def save_xml(prepared: PreparedECF, out_dir: Path) -> Path:
    """Write the prepared XML to ``out_dir`` under its DGII file name."""
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / prepared.file_name
    tmp = out_path.with_suffix(".tmp")
    tmp.write_text(prepared.xml, encoding="utf-8")
    os.replace(tmp, out_path)
    logger.debug("Saved %s", out_path)
    return out_path
