from __future__ import annotations

from dataclasses import dataclass

from ecf.services.exceptions import RecordError


def parse_code(value, field_name: str) -> str:
    """Read a catalog code (municipio, provincia) that must stay text.

    YAML reads an unquoted ``010100`` as an octal integer, so any non-string
    value is rejected rather than converted.
    """
    if not isinstance(value, str):
        raise RecordError(
            f"{field_name}: el código debe ir entre comillas en el YAML, se recibió {value!r}"
        )
    return value


def parse_optional_code(value, field_name: str) -> str | None:
    if value is None or value == "":
        return None
    return parse_code(value, field_name)


@dataclass(frozen=True)
class Emitter:
    """Emisor: the taxpayer issuing the e-CF."""

    rnc: str
    razon_social: str
    direccion: str
    municipio: str
    provincia: str
    nombre_comercial: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> Emitter:
        """Create an Emitter from a YAML-loaded dict."""
        nombre = d.get("nombre_comercial")
        return cls(
            rnc=str(d["rnc"]),
            razon_social=str(d["razon_social"]),
            direccion=str(d["direccion"]),
            municipio=parse_code(d["municipio"], "municipio"),
            provincia=parse_code(d["provincia"], "provincia"),
            nombre_comercial=str(nombre) if nombre else None,
        )
