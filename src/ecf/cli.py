from __future__ import annotations

import argparse
import logging
import sys
from importlib.resources import files
from pathlib import Path


def _init_config() -> None:
    """Copy bundled config templates to the user's config directory."""
    from ecf.config import get_config_dir

    config_dir = get_config_dir()
    templates = files("ecf") / "templates"
    config_dir.mkdir(parents=True, exist_ok=True)

    copied = 0
    for rel in ["emitter.yaml.example", "record.yaml.example"]:
        dest = config_dir / rel
        if dest.exists():
            print(f"  ya existe: {dest}")
            continue
        src = templates / rel
        with src.open("rb") as f:
            dest.write_bytes(f.read())
        print(f"  creado: {dest}")
        copied += 1

    print()
    print(f"Configuración: {config_dir}")
    if copied:
        print()
        print("Próximos pasos:")
        print(f"  1. cp {config_dir / 'emitter.yaml.example'} {config_dir / 'emitter.yaml'}")
        print("  2. Edite emitter.yaml con los datos de su RNC")
        print("  3. Ejecute: ecf-dgii generate record.yaml")
    else:
        print("Ningún archivo nuevo creado (todos ya existían).")


def _load(path: str):
    from ecf.config import load_record
    from ecf.models.invoice import ECFData

    return ECFData.from_dict(load_record(Path(path)))


def _print_record_error(e: Exception) -> None:
    print(f"Error: registro inválido: {e}")
    for err in getattr(e, "errors", []):
        print(f"  - {err}")


def _cmd_generate(args: argparse.Namespace) -> int:
    from ecf.services.emission import prepare, save_xml
    from ecf.services.exceptions import RecordError
    from ecf.utils.formatters import format_dop

    try:
        prepared = prepare(_load(args.record), resumen=args.resumen)
    except (KeyError, RecordError) as e:
        _print_record_error(e)
        return 1

    for tag in prepared.totals.unrecognized:
        print(f"AVISO: línea {tag.numero_linea}: tasa ITBIS desconocida '{tag.tasa_itbis}'")

    if args.output is None:
        print(prepared.xml)
        return 0
    out_path = save_xml(prepared, Path(args.output))
    totals = prepared.totals
    print(f"XML guardado en {out_path}")
    print(f"  Total: {format_dop(totals.monto_total)} (ITBIS {format_dop(totals.total_itbis)})")
    return 0


def _cmd_qr(args: argparse.Namespace) -> int:
    from ecf.services.ecf_builder import generate_qr_url
    from ecf.services.exceptions import RecordError
    from ecf.services.totals import apply_totals

    try:
        record, _ = apply_totals(_load(args.record))
    except (KeyError, RecordError) as e:
        _print_record_error(e)
        return 1
    print(generate_qr_url(record, is_rfce=args.resumen))
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    from ecf.services.encoding import validate_and_clean_xml
    from ecf.services.validation import (
        check_well_formed,
        validate_against_xsd,
        validate_document_file_name,
        validate_xml_structure,
    )

    path = Path(args.xml)
    xml = path.read_text(encoding="utf-8")
    errors = [
        *validate_xml_structure(xml).errors,
        *check_well_formed(xml).errors,
        *validate_and_clean_xml(xml).errors,
        *validate_document_file_name(xml, path.name).errors,
    ]
    if args.xsd:
        errors.extend(validate_against_xsd(xml, Path(args.xsd)).errors)

    if errors:
        for err in errors:
            print(f"  - {err}")
        return 1
    print("XML válido")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ecf-dgii", description="Generador de e-CF DGII")
    parser.add_argument("-v", "--verbose", action="store_true", help="mostrar logs de depuración")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="crear archivos de configuración de ejemplo")

    gen = sub.add_parser("generate", help="generar el XML de un registro YAML")
    gen.add_argument("record")
    gen.add_argument("--resumen", action="store_true", help="generar RFCE en lugar de e-CF")
    gen.add_argument("-o", "--output", help="directorio de salida (por defecto stdout)")
    gen.set_defaults(func=_cmd_generate)

    qr = sub.add_parser("qr", help="mostrar la URL del código QR")
    qr.add_argument("record")
    qr.add_argument("--resumen", action="store_true")
    qr.set_defaults(func=_cmd_qr)

    val = sub.add_parser("validate", help="validar un XML generado")
    val.add_argument("xml")
    val.add_argument("--xsd", help="XSD de la DGII para validación completa")
    val.set_defaults(func=_cmd_validate)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the ecf-dgii CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "init":
        _init_config()
        return

    try:
        code = args.func(args)
    except FileNotFoundError as e:
        print(f"Error: archivo no encontrado: {e.filename}")
        print("Ejecute 'ecf-dgii init' para crear los archivos de ejemplo.")
        code = 1
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
