from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "ecf-dgii"


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Only checks sources available before .env is loaded (shell env var, dev layout,
    an existing platformdirs directory).
    """
    from_env = os.environ.get("ECF_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform default.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/ecf/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    return Path(platformdirs.user_config_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("ECF_CONFIG_DIR", "config")


# --- DGII wire constants ---

ECF_NS = "http://dgii.gov.do/ecf/schemas/e-CF"
RFCE_NS = "http://dgii.gov.do/ecf/schemas/RFCE"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

SCHEMA_VERSION = "1.0"

DEFAULT_QR_BASE_URL = "https://dgii.gov.do/ecf/consulta"

ITBIS_RATES = {
    "18": Decimal("0.18"),
    "16": Decimal("0.16"),
}

# DGII TipoSubtotal codes, in emission order
SUBTOTAL_TYPES = {"18": "1", "16": "2", "0": "3", "E": "4"}

ECF_TYPES = {
    "31": "Factura de Crédito Fiscal",
    "32": "Factura de Consumo",
    "33": "Nota de Débito",
    "34": "Nota de Crédito",
    "41": "Compras",
    "43": "Gastos Menores",
    "44": "Regímenes Especiales",
    "45": "Gubernamental",
    "46": "Exportaciones",
    "47": "Pagos al Exterior",
}


def get_qr_base_url() -> str:
    """Return the QR verification base URL, overridable via ECF_QR_BASE_URL."""
    return os.environ.get("ECF_QR_BASE_URL", DEFAULT_QR_BASE_URL)


# --- YAML config ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level dict."""
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def load_emitter() -> dict:
    """Load issuer defaults from config/emitter.yaml.

    Returns an empty dict when the file does not exist, so records that carry
    their own emisor block still work without any configuration.
    """
    path = get_config_dir() / "emitter.yaml"
    if not path.is_file():
        return {}
    return load_yaml(path)


def load_record(path: Path) -> dict:
    """Load an e-CF record file, filling the emisor block from emitter.yaml.

    Keys present in the record's own emisor block win over the defaults.
    """
    data = load_yaml(path)
    emisor = {**load_emitter(), **(data.get("emisor") or {})}
    if emisor:
        data["emisor"] = emisor
    return data
