# core/configuracion.py
from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .modelo import (
    BOOL_FIELDS,
    CALC_METHODS,
    DEFAULT_PROJECT_VALUES,
    NUMERIC_FIELDS,
    TEXT_FIELDS,
    resolve_field_name,
)
from .rutas import base_dir_seguro
from .sizing import INVERTER_SIZES_KVA

logger = logging.getLogger(__name__)

BASE_DIR = base_dir_seguro()
CONFIG_DIR = Path(os.environ.get("SOLAR_CONFIG_DIR", str(BASE_DIR / "config")))
CONFIG_FILE = "parametros.yaml"

DEFAULT_DEBOUNCE_MS = 500
DEFAULT_STORE_FILE = "solarProjects.json"


def _opcion(value: float, label: str) -> Dict[str, Any]:
    return {"value": value, "label": label}


@dataclass(frozen=True)
class ConfigSolar:
    defaults: Dict[str, Any] = field(default_factory=lambda: dict(DEFAULT_PROJECT_VALUES))
    inverter_sizes_kva: Tuple[float, ...] = INVERTER_SIZES_KVA
    panel_wattage_options: Tuple[float, ...] = (300, 400, 450, 550)
    dod_options: Tuple[Dict[str, Any], ...] = (
        _opcion(0.8, "Lithium-ion (80% DoD)"),
        _opcion(0.9, "Lithium-ion (90% DoD)"),
        _opcion(0.5, "Lead-Acid (50% DoD)"),
    )
    system_voltage_options: Tuple[float, ...] = (12, 24, 48)
    unit_voltage_options: Tuple[float, ...] = (2, 6, 12)
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    store_path: Path = BASE_DIR / "datos" / DEFAULT_STORE_FILE


# ==========================================================
# Lectura YAML
# ==========================================================
def _leer_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug("Sin archivo de config en %s; se usan defaults", path)
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config inválida (debe ser dict): {path}")
    return data


def _num_tuple(v: Any, ctx: str) -> Tuple[float, ...]:
    if not isinstance(v, list) or not v:
        raise ValueError(f"'{ctx}' debe ser una lista no vacía de números")
    try:
        return tuple(float(x) for x in v)
    except (TypeError, ValueError) as e:
        raise ValueError(f"'{ctx}' debe contener solo números. Valor={v!r}") from e


_BOOL_TEXTOS = {
    "true": True, "yes": True, "on": True, "1": True, "si": True, "sí": True,
    "false": False, "no": False, "off": False, "0": False,
}


def _valor_default(attr: str, k: Any, val: Any) -> Any:
    ctx = f"proyecto_defaults.{k}"
    if attr in NUMERIC_FIELDS:
        if isinstance(val, bool) or not isinstance(val, (int, float)) or not math.isfinite(val) or val < 0:
            raise ValueError(f"'{ctx}' debe ser un número finito >= 0. Valor={val!r}")
        return val
    if attr in BOOL_FIELDS:
        if isinstance(val, bool):
            return val
        if isinstance(val, str) and val.strip().lower() in _BOOL_TEXTOS:
            return _BOOL_TEXTOS[val.strip().lower()]
        raise ValueError(f"'{ctx}' debe ser booleano. Valor={val!r}")
    if attr in TEXT_FIELDS:
        if not isinstance(val, (str, int, float)) or isinstance(val, bool):
            raise ValueError(f"'{ctx}' debe ser texto. Valor={val!r}")
        return str(val)
    if attr == "calc_method":
        if val not in CALC_METHODS:
            raise ValueError(f"'{ctx}' debe ser uno de {CALC_METHODS}")
        return val
    raise ValueError(f"'{ctx}' no es configurable")


def _defaults_proyecto(v: Any) -> Dict[str, Any]:
    if not isinstance(v, dict):
        raise ValueError("'proyecto_defaults' debe ser un dict")
    out = dict(DEFAULT_PROJECT_VALUES)
    for k, val in v.items():
        try:
            attr = resolve_field_name(str(k))
        except ValueError as e:
            raise ValueError(f"'proyecto_defaults.{k}' no es un campo conocido") from e
        if attr not in DEFAULT_PROJECT_VALUES:
            raise ValueError(f"'proyecto_defaults.{k}' no es configurable")
        out[attr] = _valor_default(attr, k, val)
    return out


def _dod_options(v: Any) -> Tuple[Dict[str, Any], ...]:
    if not isinstance(v, list) or not v:
        raise ValueError("'opciones_dod' debe ser una lista no vacía")
    out: List[Dict[str, Any]] = []
    for i, o in enumerate(v):
        if not isinstance(o, dict) or "value" not in o:
            raise ValueError(f"'opciones_dod[{i}]' inválida: {o!r}")
        try:
            valor = float(o["value"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"'opciones_dod[{i}].value' debe ser numérico. Valor={o['value']!r}") from e
        if not 0 < valor <= 1:
            raise ValueError(f"'opciones_dod[{i}].value' debe estar en (0, 1]. Valor={valor!r}")
        out.append(_opcion(valor, str(o.get("label") or o["value"])))
    return tuple(out)


def _debounce_ms(v: Any) -> int:
    if isinstance(v, bool):
        raise ValueError(f"'debounce_ms' debe ser un entero >= 0. Valor={v!r}")
    try:
        return max(0, int(v))
    except (TypeError, ValueError) as e:
        raise ValueError(f"'debounce_ms' debe ser un entero >= 0. Valor={v!r}") from e


def _resolver_store_path(raw: Mapping[str, Any]) -> Path:
    env = os.environ.get("SOLAR_PROJECTS_PATH")
    if env:
        return Path(env)
    nombre = str(raw.get("archivo_proyectos") or DEFAULT_STORE_FILE)
    p = Path(nombre)
    return p if p.is_absolute() else BASE_DIR / "datos" / p


def construir_config(raw: Optional[Mapping[str, Any]]) -> ConfigSolar:
    raw = raw or {}
    kw: Dict[str, Any] = {"store_path": _resolver_store_path(raw)}
    if "proyecto_defaults" in raw:
        kw["defaults"] = _defaults_proyecto(raw["proyecto_defaults"])
    if "inversores_kva" in raw:
        kw["inverter_sizes_kva"] = tuple(sorted(_num_tuple(raw["inversores_kva"], "inversores_kva")))
    if "paneles_w" in raw:
        kw["panel_wattage_options"] = _num_tuple(raw["paneles_w"], "paneles_w")
    if "opciones_dod" in raw:
        kw["dod_options"] = _dod_options(raw["opciones_dod"])
    if "voltajes_sistema" in raw:
        kw["system_voltage_options"] = _num_tuple(raw["voltajes_sistema"], "voltajes_sistema")
    if "voltajes_bateria" in raw:
        kw["unit_voltage_options"] = _num_tuple(raw["voltajes_bateria"], "voltajes_bateria")
    if "debounce_ms" in raw:
        kw["debounce_ms"] = _debounce_ms(raw["debounce_ms"])
    return ConfigSolar(**kw)


def cargar_configuracion(config_dir: Optional[Path] = None) -> ConfigSolar:
    path = Path(config_dir or CONFIG_DIR) / CONFIG_FILE
    return construir_config(_leer_yaml(path))
