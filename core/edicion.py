# core/edicion.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .modelo import (
    BOOL_FIELDS,
    CALC_METHODS,
    NUMERIC_FIELDS,
    READ_ONLY_FIELDS,
    TEXT_FIELDS,
    ApplianceEntry,
    ProjectRecord,
    new_id,
    parse_bool,
    parse_number,
    resolve_field_name,
)
from .sizing import nameplate_load, total_watt_hours

logger = logging.getLogger(__name__)


# ==========================================================
# Sincronización auditoría -> kWh/día (un solo sentido)
# ==========================================================
def sync_record(record: ProjectRecord) -> ProjectRecord:
    """
    En modo auditoría, dailyEnergyKwh (y peakLoad si no es manual) se derivan
    de la lista de equipos. Solo se escribe si el valor cambió; si no hay
    cambios se devuelve el MISMO objeto (punto fijo tras una pasada).
    """
    if not record.is_audit:
        return record

    cambios: Dict[str, Any] = {}
    kwh = total_watt_hours(record.appliances) / 1000.0
    if record.daily_energy_kwh != kwh:
        cambios["daily_energy_kwh"] = kwh

    if not record.is_peak_load_custom:
        pico = nameplate_load(record.appliances)
        if record.peak_load != pico:
            cambios["peak_load"] = pico

    if not cambios:
        return record
    return replace(record, **cambios)


# ==========================================================
# Edición de campos
# ==========================================================
def coerce_field_value(attr: str, raw: Any, current: Any) -> Any:
    if attr in NUMERIC_FIELDS:
        return parse_number(raw, 0.0)
    if attr in BOOL_FIELDS:
        return parse_bool(raw)
    if attr in TEXT_FIELDS:
        return "" if raw is None else str(raw)
    if attr == "calc_method":
        v = str(raw or "").strip().lower()
        if v not in CALC_METHODS:
            logger.debug("calcMethod inválido %r, se conserva %r", raw, current)
            return current
        return v
    if attr == "appliances":
        return _coerce_appliances(raw)
    raise ValueError(f"Campo no editable: {attr!r}")


def apply_field_update(record: ProjectRecord, field_name: str, raw_value: Any) -> ProjectRecord:
    """
    Aplica un cambio de la UI con coerción de tipo.
    Numéricos: texto -> número, 0 si no se puede interpretar.
    """
    attr = resolve_field_name(field_name)
    if attr in READ_ONLY_FIELDS:
        raise ValueError(f"El campo {field_name!r} es de solo lectura")

    value = coerce_field_value(attr, raw_value, getattr(record, attr))
    if value == getattr(record, attr):
        return sync_record(record)
    return sync_record(replace(record, **{attr: value}))


def apply_field_updates(record: ProjectRecord, changes: Mapping[str, Any]) -> ProjectRecord:
    out = record
    for k, v in (changes or {}).items():
        out = apply_field_update(out, k, v)
    return out


# ==========================================================
# Equipos (auditoría)
# ==========================================================
def _coerce_appliances(raw: Any) -> List[ApplianceEntry]:
    if not isinstance(raw, (list, tuple)):
        return []
    out: List[ApplianceEntry] = []
    for a in raw:
        if isinstance(a, ApplianceEntry):
            out.append(ApplianceEntry.from_dict(a.to_dict()))
        elif isinstance(a, Mapping):
            out.append(ApplianceEntry.from_dict(a))
    return out


def add_appliance(
    record: ProjectRecord,
    name: str = "",
    quantity: Any = 1,
    wattage: Any = 0,
    hours: Any = 0,
    appliance_id: Optional[Any] = None,
) -> ProjectRecord:
    nuevo = ApplianceEntry.from_dict({
        "id": appliance_id if appliance_id is not None else new_id(),
        "name": name,
        "quantity": quantity,
        "wattage": wattage,
        "hours": hours,
    })
    return sync_record(replace(record, appliances=[*record.appliances, nuevo]))


def update_appliance(record: ProjectRecord, appliance_id: Any, field_name: str, raw_value: Any) -> ProjectRecord:
    if field_name not in ("name", "quantity", "wattage", "hours"):
        raise ValueError(f"Campo de equipo desconocido: {field_name!r}")

    apps: List[ApplianceEntry] = []
    for a in record.appliances:
        if a.id == appliance_id:
            a = ApplianceEntry.from_dict({**a.to_dict(), field_name: raw_value})
        apps.append(a)

    if apps == record.appliances:
        return sync_record(record)
    return sync_record(replace(record, appliances=apps))


def remove_appliance(record: ProjectRecord, appliance_id: Any) -> ProjectRecord:
    apps = [a for a in record.appliances if a.id != appliance_id]
    if len(apps) == len(record.appliances):
        return sync_record(record)
    return sync_record(replace(record, appliances=apps))


def replace_appliances(record: ProjectRecord, rows: Iterable[Mapping[str, Any]]) -> ProjectRecord:
    """Reemplaza toda la lista (tabla editable). Filas sin id reciben uno nuevo."""
    return apply_field_update(record, "appliances", list(rows))
