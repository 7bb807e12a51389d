# ui/paneles.py
from __future__ import annotations

from typing import Any, Dict

import streamlit as st

from core.configuracion import ConfigSolar
from core.modelo import DerivedMetrics
from core.rutas import num

_CUSTOM = "custom"


def _ui_panel_wattage(ctx, cfg: ConfigSolar) -> float:
    r = ctx.record
    opciones = [float(x) for x in cfg.panel_wattage_options]
    actual = float(r.panel_wattage)
    lista = opciones + [_CUSTOM]
    sel = st.selectbox(
        "Panel Wattage",
        options=lista,
        index=lista.index(actual) if actual in opciones else len(opciones),
        format_func=lambda v: "Custom..." if v == _CUSTOM else f"{v:g}W",
        help="The power rating of a single solar panel.",
        key=f"panelWattageSel_{ctx.sesion_id}",
    )
    if sel != _CUSTOM:
        return float(sel)
    return st.number_input(
        "Custom Wattage (W)",
        min_value=0.0,
        step=5.0,
        value=actual,
        key=f"panelWattage_{ctx.sesion_id}",
    )


def entradas(ctx, cfg: ConfigSolar) -> Dict[str, Any]:
    st.markdown("### Solar panel sizing")
    st.caption("Calculate the required solar array size.")

    r = ctx.record
    cambios: Dict[str, Any] = {}

    col1, col2, col3 = st.columns(3)
    with col1:
        cambios["peakSunHours"] = st.number_input(
            "Peak Sun Hours",
            min_value=0.0,
            step=0.1,
            value=float(r.peak_sun_hours),
            help="The average daily hours of intense sunlight.",
            key=f"peakSunHours_{ctx.sesion_id}",
        )
    with col2:
        cambios["systemEfficiency"] = st.number_input(
            "System Efficiency (%)",
            min_value=0.0,
            max_value=100.0,
            step=1.0,
            value=min(float(r.system_efficiency), 100.0),
            help="Accounts for energy loss. 80-85% is typical.",
            key=f"systemEfficiency_{ctx.sesion_id}",
        )
    with col3:
        cambios["panelWattage"] = _ui_panel_wattage(ctx, cfg)

    cambios["hasBuiltInController"] = st.checkbox(
        "Inverter has a built-in charge controller",
        value=bool(r.has_built_in_controller),
        key=f"hasBuiltInController_{ctx.sesion_id}",
    )
    return cambios


def resultados(ctx, d: DerivedMetrics) -> None:
    c1, c2, c3 = st.columns(3)
    c1.metric("Required array", f"{num(d.required_panel_wattage, 0)} W")
    c2.metric("Panels", f"{d.number_of_panels}")
    c3.metric("Array size", f"{num(d.actual_system_size_kw)} kW")

    st.markdown("#### Charge controller")
    if ctx.record.has_built_in_controller:
        st.caption("Built-in controller: no separate charge controller required.")
    else:
        st.metric("Required controller size", f"{d.charge_controller_amps:,} A")
        st.caption("Based on solar array output and battery voltage, with a 25% safety factor.")
