# ui/inversor.py
from __future__ import annotations

from typing import Any, Dict, List

import streamlit as st

from core.configuracion import ConfigSolar
from core.modelo import DerivedMetrics
from core.rutas import kva, watts


def _opciones_inversor(ctx, cfg: ConfigSolar) -> List[float]:
    # 0 = sin selección (se usa la recomendación)
    opciones = [0.0] + [float(x) for x in cfg.inverter_sizes_kva]
    sel = float(ctx.record.selected_inverter_kva or 0.0)
    if sel not in opciones:
        opciones.append(sel)
    return opciones


def entradas(ctx, cfg: ConfigSolar) -> Dict[str, Any]:
    st.markdown("### Inverter sizing")
    st.caption("Size the component that converts DC to AC power.")

    r = ctx.record
    cambios: Dict[str, Any] = {}

    if r.is_audit:
        custom = st.checkbox(
            "Set peak load manually",
            value=bool(r.is_peak_load_custom),
            help="Off: peak load = sum of the nameplate wattage of every appliance.",
            key=f"isPeakLoadCustom_{ctx.sesion_id}",
        )
        cambios["isPeakLoadCustom"] = custom
    else:
        custom = True

    if custom:
        cambios["peakLoad"] = st.number_input(
            "Peak Load (W)",
            min_value=0.0,
            step=50.0,
            value=float(r.peak_load),
            help="The maximum total wattage of all appliances you might run at the same time.",
            key=f"peakLoad_{ctx.sesion_id}",
        )
    else:
        st.metric("Peak Load (all appliances at once)", watts(float(r.peak_load)))

    opciones = _opciones_inversor(ctx, cfg)
    cambios["selectedInverterKva"] = st.selectbox(
        "Selected inverter",
        options=opciones,
        index=opciones.index(float(r.selected_inverter_kva or 0.0)),
        format_func=lambda x: "Use recommendation" if not x else kva(x),
        key=f"selectedInverterKva_{ctx.sesion_id}",
    )
    return cambios


def resultados(ctx, d: DerivedMetrics) -> None:
    c1, c2 = st.columns(2)
    c1.metric("Required inverter (25% margin)", watts(d.inverter_size_watts))
    c2.metric("Required apparent power (PF 0.8)", f"{d.inverter_size_kva:,.2f} kVA")

    st.markdown("#### Inverter suggestions")
    if not d.suggested_inverter_sizes:
        return
    for i, s in enumerate(d.suggested_inverter_sizes):
        st.write(f"**{kva(s)}** · Recommended" if i == 0 else kva(s))
