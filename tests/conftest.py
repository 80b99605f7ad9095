from __future__ import annotations

import pytest
from lxml import etree

from ecf.models.invoice import ECFData
from ecf.services.totals import apply_totals

NS = {"e": "http://dgii.gov.do/ecf/schemas/e-CF", "r": "http://dgii.gov.do/ecf/schemas/RFCE"}


def parse_xml(xml: str) -> etree._Element:
    return etree.fromstring(xml.encode("utf-8"))


def xml_text(xml: str, xpath: str) -> str | None:
    """Extract text from generated XML by namespaced xpath (prefix e: or r:)."""
    found = parse_xml(xml).find(xpath, NS)
    return found.text if found is not None else None


# --- Issuer / buyer fixtures ---


@pytest.fixture
def emitter_dict() -> dict:
    return {
        "rnc": "130000000",
        "razon_social": "DISTRIBUIDORA CARIBE SRL",
        "nombre_comercial": "Caribe",
        "direccion": "Av. Winston Churchill 100",
        "municipio": "010100",
        "provincia": "010000",
    }


@pytest.fixture
def buyer_dict() -> dict:
    return {
        "rnc": "101000000",
        "razon_social": "CLIENTE EJEMPLO SRL",
        "direccion": "Calle El Conde 5",
        "municipio": "010100",
        "provincia": "010000",
        "telefono": "809-555-0100",
        "email": "compras@cliente.do",
    }


# --- Record fixtures ---


@pytest.fixture
def record_dict(emitter_dict, buyer_dict) -> dict:
    return {
        "tipo_ecf": "31",
        "encf": "E310000000001",
        "fecha_emision": "2024-01-15",
        "tipo_ingresos": "01",
        "emisor": emitter_dict,
        "comprador": buyer_dict,
        "items": [
            {
                "descripcion": "Servicio de consultoría",
                "tipo_item": "servicio",
                "cantidad": 2,
                "precio_unitario": "500.00",
                "tasa_itbis": "18",
            },
        ],
    }


@pytest.fixture
def record(record_dict) -> ECFData:
    """A type 31 record with totals applied: 1000.00 at 18% -> 1180.00."""
    rec, _ = apply_totals(ECFData.from_dict(record_dict))
    return rec


@pytest.fixture
def consumer_record(emitter_dict) -> ECFData:
    """Type 32 (Factura de Consumo) without buyer, one 18% line."""
    rec = ECFData.from_dict(
        {
            "tipo_ecf": "32",
            "encf": "E320000000001",
            "fecha_emision": "2024-01-15",
            "emisor": emitter_dict,
            "items": [
                {"descripcion": "Mercancía", "cantidad": 2, "precio_unitario": 500, "tasa_itbis": "18"},
            ],
        }
    )
    rec, _ = apply_totals(rec)
    return rec


@pytest.fixture
def config_dir(tmp_path, emitter_dict):
    import yaml

    cfg = tmp_path / "config"
    cfg.mkdir()
    (cfg / "emitter.yaml").write_text(yaml.dump(emitter_dict))
    return cfg


@pytest.fixture
def record_file(tmp_path, record_dict) -> str:
    import yaml

    path = tmp_path / "record.yaml"
    path.write_text(yaml.dump(record_dict, allow_unicode=True), encoding="utf-8")
    return str(path)

