# core/validacion.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .modelo import CALC_BILL, DerivedMetrics, ProjectRecord


class Step(str, Enum):
    PROJECT_DETAILS = "ProjectDetails"
    ENERGY_CONSUMPTION = "EnergyConsumption"
    INVERTER_SIZING = "InverterSizing"
    BATTERY_SIZING = "BatterySizing"
    PANEL_SIZING = "PanelSizing"
    SUMMARY = "Summary"


STEPS: Tuple[Step, ...] = tuple(Step)

STEP_TITLES: Dict[Step, str] = {
    Step.PROJECT_DETAILS: "Project Details",
    Step.ENERGY_CONSUMPTION: "Daily Energy Consumption",
    Step.INVERTER_SIZING: "Inverter Sizing",
    Step.BATTERY_SIZING: "Battery Bank Sizing",
    Step.PANEL_SIZING: "Solar Panel Sizing",
    Step.SUMMARY: "System Summary",
}


@dataclass(frozen=True)
class StepResult:
    valid: bool
    message: Optional[str] = None
    can_advance: bool = False


# ==========================================================
# Predicados por paso
# ==========================================================
def _project_details(r: ProjectRecord, d: DerivedMetrics) -> Optional[str]:
    if not str(r.project_name or "").strip():
        return "Enter a project name to continue."
    return None


def _energy_consumption(r: ProjectRecord, d: DerivedMetrics) -> Optional[str]:
    if r.calc_method == CALC_BILL:
        if not r.daily_energy_kwh > 0:
            return "Enter an average daily energy use greater than 0 kWh."
        return None
    if not d.total_appliance_watt_hours > 0:
        return "Add at least one appliance with quantity, wattage and hours greater than 0."
    return None


def _inverter_sizing(r: ProjectRecord, d: DerivedMetrics) -> Optional[str]:
    if not d.peak_load > 0:
        return "Peak load must be greater than 0 W."
    return None


def _battery_sizing(r: ProjectRecord, d: DerivedMetrics) -> Optional[str]:
    if not r.days_of_autonomy > 0:
        return "Days of autonomy must be greater than 0."
    if not r.available_battery_ah > 0:
        return "Enter the capacity (Ah) of the battery you plan to use."
    return None


def _panel_sizing(r: ProjectRecord, d: DerivedMetrics) -> Optional[str]:
    if not r.peak_sun_hours > 0:
        return "Peak sun hours must be greater than 0."
    if not r.system_efficiency > 0:
        return "System efficiency must be greater than 0%."
    if not r.panel_wattage > 0:
        return "Panel wattage must be greater than 0 W."
    return None


_PREDICADOS: Dict[Step, Callable[[ProjectRecord, DerivedMetrics], Optional[str]]] = {
    Step.PROJECT_DETAILS: _project_details,
    Step.ENERGY_CONSUMPTION: _energy_consumption,
    Step.INVERTER_SIZING: _inverter_sizing,
    Step.BATTERY_SIZING: _battery_sizing,
    Step.PANEL_SIZING: _panel_sizing,
    Step.SUMMARY: lambda r, d: None,
}


# ==========================================================
# API pública
# ==========================================================
def as_step(step: "Step | str | int") -> Step:
    if isinstance(step, Step):
        return step
    if isinstance(step, int):
        return STEPS[step]
    return Step(step)


def step_index(step: "Step | str | int") -> int:
    return STEPS.index(as_step(step))


def is_terminal(step: "Step | str | int") -> bool:
    return as_step(step) == STEPS[-1]


def validate_step(record: ProjectRecord, derived: DerivedMetrics, step: "Step | str | int", is_new: bool) -> StepResult:
    """
    Validez del paso + si se permite avanzar.
    Los proyectos existentes avanzan sin pasar la validación; los nuevos no.
    """
    s = as_step(step)
    msg = _PREDICADOS[s](record, derived)
    valid = msg is None
    avanzar = (valid or not is_new) and not is_terminal(s)
    return StepResult(valid=valid, message=msg, can_advance=avanzar)


def can_advance(record: ProjectRecord, derived: DerivedMetrics, step: "Step | str | int", is_new: bool) -> bool:
    return validate_step(record, derived, step, is_new).can_advance


def next_step(step: "Step | str | int") -> Step:
    i = step_index(step)
    return STEPS[min(i + 1, len(STEPS) - 1)]


def previous_step(step: "Step | str | int") -> Step:
    i = step_index(step)
    return STEPS[max(i - 1, 0)]
