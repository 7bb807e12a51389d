# core/sizing.py
from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

from .modelo import ApplianceEntry, DerivedMetrics, ProjectRecord


# ==========================================================
# Constantes / defaults
# ==========================================================
INVERTER_SIZES_KVA: Tuple[float, ...] = (1, 1.5, 2, 2.5, 3, 4, 5, 8, 10, 12)
MAX_INVERTER_SUGGESTIONS = 3

INVERTER_SAFETY_MARGIN = 1.25
INVERTER_POWER_FACTOR = 0.8
CONTROLLER_SAFETY_MARGIN = 1.25

DOD_EPSILON = 1e-6

MSG_VOLTAGE_INCOMPATIBLE = (
    "System voltage ({sistema:g}V) is not divisible by the available battery voltage ({unidad:g}V); "
    "battery count cannot be calculated."
)
MSG_NO_INVERTER = "No standard inverters match. Check peak load."
MSG_INVERTER_UNDERSIZED = "Selected inverter ({sel:g} kVA) is below the required {req:.2f} kVA."


# ==========================================================
# Aritmética protegida
# ==========================================================
def _finite(x: float) -> float:
    """Salida numérica válida: finita y no negativa; si no, 0."""
    try:
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v) or v < 0:
        return 0.0
    return v


def _div(num: float, den: float, den_min: float) -> float:
    """División con denominador acotado lejos de cero."""
    return _finite(float(num) / max(float(den), den_min))


def _ceil(x: float) -> int:
    return int(math.ceil(_finite(x)))


# ==========================================================
# Energía / cargas
# ==========================================================
def total_watt_hours(appliances: Iterable[ApplianceEntry]) -> float:
    return _finite(sum(a.watt_hours for a in appliances))


def nameplate_load(appliances: Iterable[ApplianceEntry]) -> float:
    # pico = todas las cargas a la vez (criterio conservador)
    return _finite(sum(a.nameplate_watts for a in appliances))


def daily_energy_wh(record: ProjectRecord) -> float:
    if record.is_audit:
        return total_watt_hours(record.appliances)
    return _finite(float(record.daily_energy_kwh) * 1000.0)


def effective_peak_load(record: ProjectRecord) -> float:
    if record.is_audit and not record.is_peak_load_custom:
        return nameplate_load(record.appliances)
    return _finite(record.peak_load)


# ==========================================================
# Paneles
# ==========================================================
def effective_panel_wattage(record: ProjectRecord) -> float:
    return max(_finite(record.panel_wattage), 1.0)


def required_panel_wattage(energy_wh: float, peak_sun_hours: float, efficiency_pct: float) -> float:
    den = float(peak_sun_hours) * float(efficiency_pct) / 100.0
    if not math.isfinite(den) or den <= 0:
        den = 1.0
    return _finite(energy_wh / den)


# ==========================================================
# Baterías
# ==========================================================
def battery_voltage_compatible(system_v: float, unit_v: float) -> bool:
    if not float(unit_v) > 0:
        return False
    return float(system_v) % float(unit_v) == 0


def battery_bank(required_ah: int, system_v: float, unit_v: float, unit_ah: float) -> Tuple[bool, int, int, int]:
    """(compatible, en serie, strings en paralelo, total)."""
    ok = battery_voltage_compatible(system_v, unit_v)
    if not ok or not float(unit_ah) > 0:
        return ok, 0, 0, 0
    serie = int(_finite(float(system_v) / float(unit_v)))
    paralelo = _ceil(required_ah / float(unit_ah))
    return ok, serie, paralelo, serie * paralelo


# ==========================================================
# Inversor
# ==========================================================
def inverter_kva(peak_load_w: float) -> Tuple[float, float]:
    watts = _finite(peak_load_w * INVERTER_SAFETY_MARGIN)
    kva = _finite(watts / 1000.0 / INVERTER_POWER_FACTOR)
    return watts, kva


def suggest_inverters(required_kva: float, catalog: Sequence[float] = INVERTER_SIZES_KVA) -> Tuple[float, ...]:
    # igual al requerimiento cuenta como suficiente
    ok = [s for s in sorted(catalog) if s >= required_kva]
    return tuple(ok[:MAX_INVERTER_SUGGESTIONS])


# ==========================================================
# API pública
# ==========================================================
def derive_metrics(record: ProjectRecord, catalog: Sequence[float] = INVERTER_SIZES_KVA) -> DerivedMetrics:
    """
    Registro -> métricas dimensionadas. Función pura y total:
    nunca lanza por datos, nunca devuelve NaN/inf.
    """
    audit_wh = total_watt_hours(record.appliances)
    energy_wh = daily_energy_wh(record)

    # Paneles
    panel_w = effective_panel_wattage(record)
    req_panel_w = required_panel_wattage(energy_wh, record.peak_sun_hours, record.system_efficiency)
    n_panels = _ceil(req_panel_w / panel_w)
    array_w = n_panels * panel_w
    system_kw = _finite(array_w / 1000.0)

    # Baterías
    storage_wh = _finite(energy_wh * float(record.days_of_autonomy))
    cap_wh = _div(storage_wh, record.battery_dod, DOD_EPSILON)
    cap_ah = _ceil(_div(cap_wh, record.battery_voltage, 1.0))
    compatible, serie, paralelo, n_bat = battery_bank(
        cap_ah, record.battery_voltage, record.available_battery_voltage, record.available_battery_ah
    )

    # Inversor
    peak_w = effective_peak_load(record)
    inv_w, inv_kva = inverter_kva(peak_w)
    sugeridos = suggest_inverters(inv_kva, catalog)

    # Controlador de carga
    cc_amps = 0
    if not record.has_built_in_controller:
        cc_amps = _ceil(_div(array_w, record.battery_voltage, 1.0) * CONTROLLER_SAFETY_MARGIN)

    return DerivedMetrics(
        total_appliance_watt_hours=audit_wh,
        daily_energy_wh=energy_wh,
        required_panel_wattage=req_panel_w,
        number_of_panels=n_panels,
        actual_system_size_kw=system_kw,
        total_storage_wh=storage_wh,
        required_battery_capacity_wh=cap_wh,
        required_battery_capacity_ah=cap_ah,
        battery_voltage_compatible=compatible,
        batteries_in_series=serie,
        parallel_strings=paralelo,
        total_number_of_batteries=n_bat,
        peak_load=peak_w,
        inverter_size_watts=inv_w,
        inverter_size_kva=inv_kva,
        suggested_inverter_sizes=sugeridos,
        recommended_inverter_kva=float(sugeridos[0]) if sugeridos else 0.0,
        charge_controller_amps=cc_amps,
        advisories=tuple(_advisories(record, compatible, inv_kva, sugeridos)),
    )


def _advisories(record: ProjectRecord, compatible: bool, inv_kva: float, sugeridos: Tuple[float, ...]) -> List[str]:
    out: List[str] = []
    unidad = _finite(record.available_battery_voltage)
    if unidad > 0 and not compatible:
        out.append(MSG_VOLTAGE_INCOMPATIBLE.format(sistema=_finite(record.battery_voltage), unidad=unidad))
    if not sugeridos:
        out.append(MSG_NO_INVERTER)
    sel = _finite(record.selected_inverter_kva)
    if sel > 0 and sel < inv_kva:
        out.append(MSG_INVERTER_UNDERSIZED.format(sel=sel, req=inv_kva))
    return out


# ==========================================================
# Resumen (Paso final)
# ==========================================================
def summary_rows(record: ProjectRecord, derived: DerivedMetrics) -> List[Tuple[str, str, str]]:
    """Filas (etiqueta, valor, unidad) del resumen del sistema."""
    panel_w = effective_panel_wattage(record)
    inv_kva = _finite(record.selected_inverter_kva) or derived.recommended_inverter_kva
    rows = [
        ("Solar Array Size", f"{derived.actual_system_size_kw:.2f}", "kW"),
        ("Panels", f"{derived.number_of_panels}", f"x {panel_w:g}W"),
        ("Inverter Size", f"{derived.inverter_size_watts:,.0f}", "W"),
        ("Inverter (catalog)", f"{inv_kva:g}" if inv_kva else "-", "kVA"),
    ]
    if record.has_built_in_controller:
        rows.append(("Charge Controller", "Built-in", ""))
    else:
        rows.append(("Charge Controller", f"{derived.charge_controller_amps:,}", "A"))
    rows.append((
        "Batteries Needed",
        f"{derived.total_number_of_batteries}",
        f"x {_finite(record.available_battery_ah):g}Ah {_finite(record.available_battery_voltage):g}V",
    ))
    rows.append(("Total Battery Capacity", f"{derived.required_battery_capacity_wh / 1000.0:.2f}", "kWh"))
    return rows
