from __future__ import annotations

from dataclasses import dataclass

from ecf.models.emitter import parse_optional_code


def _opt_str(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class Buyer:
    """Comprador: the party receiving the e-CF. Every field is optional."""

    rnc: str | None = None
    id_extranjero: str | None = None
    razon_social: str | None = None
    direccion: str | None = None
    municipio: str | None = None
    provincia: str | None = None
    pais: str | None = None
    telefono: str | None = None
    email: str | None = None

    @property
    def has_identity(self) -> bool:
        """True when any identifying field is present (triggers <Comprador>)."""
        return bool(self.rnc or self.id_extranjero or self.razon_social)

    @classmethod
    def from_dict(cls, d: dict) -> Buyer:
        """Create a Buyer from a YAML-loaded dict, treating blanks as absent."""
        return cls(
            rnc=_opt_str(d.get("rnc")),
            id_extranjero=_opt_str(d.get("id_extranjero")),
            razon_social=_opt_str(d.get("razon_social")),
            direccion=_opt_str(d.get("direccion")),
            municipio=parse_optional_code(d.get("municipio"), "municipio"),
            provincia=parse_optional_code(d.get("provincia"), "provincia"),
            pais=_opt_str(d.get("pais")),
            telefono=_opt_str(d.get("telefono")),
            email=_opt_str(d.get("email")),
        )
