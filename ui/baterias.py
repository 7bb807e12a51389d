# ui/baterias.py
from __future__ import annotations

from typing import Any, Dict, List, Sequence

import streamlit as st

from core.configuracion import ConfigSolar
from core.modelo import DerivedMetrics
from core.rutas import num


def _con_actual(opciones: Sequence[float], actual: float) -> List[float]:
    out = [float(x) for x in opciones]
    if float(actual) not in out:
        out.append(float(actual))
    return out


def entradas(ctx, cfg: ConfigSolar) -> Dict[str, Any]:
    st.markdown("### Battery bank sizing")
    st.caption("Determine the storage capacity and number of batteries needed.")

    r = ctx.record
    cambios: Dict[str, Any] = {}

    col1, col2, col3 = st.columns(3)
    with col1:
        cambios["daysOfAutonomy"] = st.number_input(
            "Days of Autonomy",
            min_value=0.0,
            step=0.5,
            value=float(r.days_of_autonomy),
            help="How many days the system should run on battery power without sun.",
            key=f"daysOfAutonomy_{ctx.sesion_id}",
        )
    with col2:
        dods = {float(o["value"]): o["label"] for o in cfg.dod_options}
        dods.setdefault(float(r.battery_dod), f"Custom ({float(r.battery_dod):.0%} DoD)")
        claves = list(dods)
        cambios["batteryDoD"] = st.selectbox(
            "Battery Type (DoD)",
            options=claves,
            index=claves.index(float(r.battery_dod)),
            format_func=lambda v: dods[v],
            key=f"batteryDoD_{ctx.sesion_id}",
        )
    with col3:
        volts = _con_actual(cfg.system_voltage_options, r.battery_voltage)
        cambios["batteryVoltage"] = st.selectbox(
            "System Voltage",
            options=volts,
            index=volts.index(float(r.battery_voltage)),
            format_func=lambda v: f"{v:g}V",
            key=f"batteryVoltage_{ctx.sesion_id}",
        )

    st.markdown("#### Battery you plan to use")
    col4, col5 = st.columns(2)
    with col4:
        cambios["availableBatteryAh"] = st.number_input(
            "Available Battery Capacity (Ah)",
            min_value=0.0,
            step=10.0,
            value=float(r.available_battery_ah),
            key=f"availableBatteryAh_{ctx.sesion_id}",
        )
    with col5:
        unidades = _con_actual(cfg.unit_voltage_options, r.available_battery_voltage)
        cambios["availableBatteryVoltage"] = st.selectbox(
            "Available Battery Voltage",
            options=unidades,
            index=unidades.index(float(r.available_battery_voltage)),
            format_func=lambda v: f"{v:g}V",
            key=f"availableBatteryVoltage_{ctx.sesion_id}",
        )
    return cambios


def resultados(ctx, d: DerivedMetrics) -> None:
    c1, c2, c3 = st.columns(3)
    c1.metric("Battery capacity", f"{num(d.required_battery_capacity_wh / 1000.0)} kWh")
    c2.metric("Battery capacity", f"{d.required_battery_capacity_ah:,} Ah")
    c3.metric("Batteries needed", f"{d.total_number_of_batteries}")
    if d.battery_voltage_compatible and d.total_number_of_batteries:
        st.caption(f"{d.batteries_in_series} in series × {d.parallel_strings} parallel string(s)")
