# core/modelo.py
from __future__ import annotations

import hashlib
import json
import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple


# ==========================================================
# Constantes del modelo
# ==========================================================
CALC_AUDIT = "audit"
CALC_BILL = "bill"
CALC_METHODS = (CALC_AUDIT, CALC_BILL)

MAX_HOURS_PER_DAY = 24.0

# atributo python -> clave JSON persistida
JSON_KEYS: Dict[str, str] = {
    "id": "id",
    "project_name": "projectName",
    "client_name": "clientName",
    "calc_method": "calcMethod",
    "appliances": "appliances",
    "daily_energy_kwh": "dailyEnergyKwh",
    "peak_sun_hours": "peakSunHours",
    "system_efficiency": "systemEfficiency",
    "panel_wattage": "panelWattage",
    "days_of_autonomy": "daysOfAutonomy",
    "battery_dod": "batteryDoD",
    "battery_voltage": "batteryVoltage",
    "available_battery_ah": "availableBatteryAh",
    "available_battery_voltage": "availableBatteryVoltage",
    "peak_load": "peakLoad",
    "is_peak_load_custom": "isPeakLoadCustom",
    "selected_inverter_kva": "selectedInverterKva",
    "has_built_in_controller": "hasBuiltInController",
    "last_updated": "lastUpdated",
}
_ATTRS_BY_JSON_KEY = {v: k for k, v in JSON_KEYS.items()}

NUMERIC_FIELDS = (
    "daily_energy_kwh",
    "peak_sun_hours",
    "system_efficiency",
    "panel_wattage",
    "days_of_autonomy",
    "battery_dod",
    "battery_voltage",
    "available_battery_ah",
    "available_battery_voltage",
    "peak_load",
    "selected_inverter_kva",
)
BOOL_FIELDS = ("is_peak_load_custom", "has_built_in_controller")
TEXT_FIELDS = ("project_name", "client_name")

# Solo lectura: los asigna el repositorio
READ_ONLY_FIELDS = ("id", "last_updated")

DEFAULT_PROJECT_VALUES: Dict[str, Any] = {
    "project_name": "New Solar Project",
    "client_name": "",
    "calc_method": CALC_AUDIT,
    "daily_energy_kwh": 10.0,
    "peak_sun_hours": 5.0,
    "system_efficiency": 80.0,      # %
    "panel_wattage": 450.0,         # W por panel
    "days_of_autonomy": 1.0,
    "battery_dod": 0.8,             # fracción utilizable
    "battery_voltage": 24.0,        # V bus
    "available_battery_ah": 200.0,
    "available_battery_voltage": 12.0,
    "peak_load": 1500.0,            # W
    "is_peak_load_custom": False,
    "selected_inverter_kva": 0.0,
    "has_built_in_controller": False,
}


# ==========================================================
# Coerción de valores
# ==========================================================
def parse_number(x: Any, default: float = 0.0) -> float:
    """
    Convierte entradas de UI a número.
    Mantiene int/float tal cual (para no alterar el JSON al re-guardar),
    texto vacío o inválido -> default. Nunca devuelve NaN/inf.
    """
    if isinstance(x, bool):
        return float(x)
    if isinstance(x, (int, float)):
        return x if math.isfinite(x) else default
    if x is None:
        return default
    try:
        v = float(str(x).strip())
    except (TypeError, ValueError):
        return default
    return v if math.isfinite(v) else default


def parse_bool(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() in ("1", "true", "yes", "on", "si", "sí")
    return bool(x)


def _clamp(x: float, lo: float, hi: float) -> float:
    # conserva el tipo original (int/float) cuando ya está en rango
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x


def new_id() -> str:
    return uuid.uuid4().hex


def _id_or_new(x: Any) -> Any:
    # filas nuevas de la tabla editable llegan con id vacío o NaN
    if x is None or (isinstance(x, float) and not math.isfinite(x)) or (isinstance(x, str) and not x.strip()):
        return new_id()
    return x


# ==========================================================
# Entidades
# ==========================================================
@dataclass(frozen=True)
class ApplianceEntry:
    id: Any
    name: str = ""
    quantity: float = 1
    wattage: float = 0
    hours: float = 0

    @property
    def watt_hours(self) -> float:
        return float(self.quantity) * float(self.wattage) * float(self.hours)

    @property
    def nameplate_watts(self) -> float:
        return float(self.quantity) * float(self.wattage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "wattage": self.wattage,
            "hours": self.hours,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ApplianceEntry":
        return cls(
            id=_id_or_new(d.get("id")),
            name=str(d.get("name") or ""),
            quantity=_clamp(parse_number(d.get("quantity"), 1 if "quantity" not in d else 0), 0, math.inf),
            wattage=_clamp(parse_number(d.get("wattage"), 0), 0, math.inf),
            hours=_clamp(parse_number(d.get("hours"), 0), 0, MAX_HOURS_PER_DAY),
        )


@dataclass
class ProjectRecord:
    id: Any
    project_name: str = "New Solar Project"
    client_name: str = ""
    calc_method: str = CALC_AUDIT
    appliances: List[ApplianceEntry] = field(default_factory=list)

    daily_energy_kwh: float = 10.0
    peak_sun_hours: float = 5.0
    system_efficiency: float = 80.0
    panel_wattage: float = 450.0

    days_of_autonomy: float = 1.0
    battery_dod: float = 0.8
    battery_voltage: float = 24.0
    available_battery_ah: float = 200.0
    available_battery_voltage: float = 12.0

    peak_load: float = 1500.0
    is_peak_load_custom: bool = False
    selected_inverter_kva: float = 0.0
    has_built_in_controller: bool = False

    last_updated: str = ""

    @property
    def is_audit(self) -> bool:
        return self.calc_method == CALC_AUDIT

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for attr, key in JSON_KEYS.items():
            v = getattr(self, attr)
            if attr == "appliances":
                v = [a.to_dict() for a in v]
            out[key] = v
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], defaults: Optional[Mapping[str, Any]] = None) -> "ProjectRecord":
        """
        Tolera registros parciales o del formato anterior:
          - claves faltantes -> defaults
          - panelWattage "custom" + customPanelWattage
          - systemEfficiency como fracción (0.8) -> porcentaje (80),
            solo en registros legacy (sin lastUpdated)
        """
        base = {**DEFAULT_PROJECT_VALUES, **(defaults or {})}
        kw: Dict[str, Any] = {"id": _id_or_new(d.get("id"))}

        for attr in NUMERIC_FIELDS:
            kw[attr] = parse_number(d.get(JSON_KEYS[attr]), base[attr]) if JSON_KEYS[attr] in d else base[attr]
        for attr in BOOL_FIELDS:
            kw[attr] = parse_bool(d[JSON_KEYS[attr]]) if JSON_KEYS[attr] in d else base[attr]
        for attr in TEXT_FIELDS:
            v = d.get(JSON_KEYS[attr])
            kw[attr] = str(v) if v is not None else base[attr]

        metodo = d.get("calcMethod")
        kw["calc_method"] = metodo if metodo in CALC_METHODS else base["calc_method"]

        if str(d.get("panelWattage")) == "custom":
            kw["panel_wattage"] = parse_number(d.get("customPanelWattage"), base["panel_wattage"])

        ef = kw["system_efficiency"]
        if "lastUpdated" not in d and 0 < ef <= 1:
            kw["system_efficiency"] = round(ef * 100.0, 6)

        apps = d.get("appliances")
        kw["appliances"] = [ApplianceEntry.from_dict(a) for a in apps if isinstance(a, Mapping)] if isinstance(apps, list) else []

        lu = d.get("lastUpdated")
        kw["last_updated"] = str(lu) if lu is not None else ""
        return cls(**kw)


@dataclass(frozen=True)
class DerivedMetrics:
    """Salida del motor de cálculo. Nunca se persiste."""
    total_appliance_watt_hours: float = 0.0
    daily_energy_wh: float = 0.0

    required_panel_wattage: float = 0.0
    number_of_panels: int = 0
    actual_system_size_kw: float = 0.0

    total_storage_wh: float = 0.0
    required_battery_capacity_wh: float = 0.0
    required_battery_capacity_ah: int = 0
    battery_voltage_compatible: bool = False
    batteries_in_series: int = 0
    parallel_strings: int = 0
    total_number_of_batteries: int = 0

    peak_load: float = 0.0
    inverter_size_watts: float = 0.0
    inverter_size_kva: float = 0.0
    suggested_inverter_sizes: Tuple[float, ...] = ()
    recommended_inverter_kva: float = 0.0

    charge_controller_amps: int = 0

    advisories: Tuple[str, ...] = ()


# ==========================================================
# Fábrica / serialización
# ==========================================================
def resolve_field_name(name: str) -> str:
    """Acepta el atributo python (peak_load) o la clave JSON (peakLoad)."""
    if name in JSON_KEYS:
        return name
    if name in _ATTRS_BY_JSON_KEY:
        return _ATTRS_BY_JSON_KEY[name]
    raise ValueError(f"Campo desconocido en ProjectRecord: {name!r}")


def create_default_project(
    display_name: Optional[str] = None,
    *,
    defaults: Optional[Mapping[str, Any]] = None,
    project_id: Any = None,
    timestamp: str = "",
) -> ProjectRecord:
    vals = {**DEFAULT_PROJECT_VALUES, **(defaults or {})}
    if display_name is not None and str(display_name).strip():
        vals["project_name"] = str(display_name).strip()
    return ProjectRecord(
        id=project_id if project_id is not None else new_id(),
        appliances=[],
        last_updated=timestamp,
        **vals,
    )


def record_fingerprint(record: ProjectRecord) -> str:
    """
    Huella del contenido persistible SIN lastUpdated.
    Sirve para saltar escrituras cuando nada cambió.
    """
    payload = record.to_dict()
    payload.pop("lastUpdated", None)
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
