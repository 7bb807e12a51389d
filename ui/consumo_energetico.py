# ui/consumo_energetico.py
from __future__ import annotations

import math
import uuid
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from core.configuracion import ConfigSolar
from core.modelo import CALC_AUDIT, CALC_BILL, ApplianceEntry, DerivedMetrics

_METODOS = {CALC_AUDIT: "Appliance Audit", CALC_BILL: "From Utility Bill"}
_COLUMNAS = ["id", "name", "quantity", "wattage", "hours"]


# ==========================================================
# Tabla de equipos (pandas <-> registros)
# ==========================================================
def appliances_frame(appliances: List[ApplianceEntry]) -> pd.DataFrame:
    df = pd.DataFrame([a.to_dict() for a in appliances], columns=_COLUMNAS)
    df["daily_wh"] = df["quantity"].astype(float) * df["wattage"].astype(float) * df["hours"].astype(float)
    return df


def _row_id(token: str, idx: Any) -> str:
    # id estable entre reruns para filas nuevas de la tabla
    return uuid.uuid5(uuid.NAMESPACE_URL, f"{token}:{idx}").hex


def frame_rows(df: pd.DataFrame, token: str = "") -> List[Dict[str, Any]]:
    """Filas editadas -> dicts para ApplianceEntry.from_dict (sin columnas calculadas)."""
    cols = [c for c in _COLUMNAS if c in df.columns]
    rows: List[Dict[str, Any]] = []
    for idx, row in zip(df.index, df[cols].to_dict(orient="records")):
        rid = row.get("id")
        if rid is None or (isinstance(rid, float) and math.isnan(rid)) or rid == "":
            row["id"] = _row_id(token, idx)
        rows.append(row)
    return rows


def _editor_equipos(ctx) -> List[Dict[str, Any]]:
    r = ctx.record
    key = f"appliances_{ctx.sesion_id}"
    base_key = f"{key}_base"

    # data_editor guarda deltas sobre los datos de entrada: la base no puede
    # cambiar mientras el widget vive
    if key not in st.session_state or base_key not in st.session_state:
        st.session_state[base_key] = appliances_frame(r.appliances)

    editado = st.data_editor(
        st.session_state[base_key],
        key=key,
        num_rows="dynamic",
        hide_index=True,
        use_container_width=True,
        column_config={
            "id": None,
            "name": st.column_config.TextColumn("Appliance"),
            "quantity": st.column_config.NumberColumn("Qty", min_value=0, step=1),
            "wattage": st.column_config.NumberColumn("Wattage (W)", min_value=0),
            "hours": st.column_config.NumberColumn("Hours/Day", min_value=0, max_value=24),
            "daily_wh": st.column_config.NumberColumn("Daily Use (Wh)", disabled=True, format="%.0f"),
        },
    )
    return frame_rows(editado, ctx.sesion_id)


def entradas(ctx, cfg: ConfigSolar) -> Dict[str, Any]:
    st.markdown("### Daily energy consumption")
    st.caption("Determine the total daily power your system needs to provide.")

    r = ctx.record
    opciones = list(_METODOS)
    metodo = st.radio(
        "Calculation method",
        options=opciones,
        index=opciones.index(r.calc_method),
        format_func=lambda m: _METODOS[m],
        horizontal=True,
        key=f"calcMethod_{ctx.sesion_id}",
    )

    cambios: Dict[str, Any] = {"calcMethod": metodo}
    if metodo == CALC_AUDIT:
        cambios["appliances"] = _editor_equipos(ctx)
    else:
        cambios["dailyEnergyKwh"] = st.number_input(
            "Average Daily Energy Use (kWh)",
            min_value=0.0,
            step=0.5,
            value=float(r.daily_energy_kwh),
            help="Find this on your monthly electricity bill.",
            key=f"dailyEnergyKwh_{ctx.sesion_id}",
        )
    return cambios


def resultados(ctx, d: DerivedMetrics) -> None:
    if ctx.record.calc_method == CALC_AUDIT:
        st.metric("Total from Audit", f"{d.total_appliance_watt_hours / 1000.0:,.2f} kWh/day")
    else:
        st.metric("Daily energy", f"{d.daily_energy_wh / 1000.0:,.2f} kWh/day")
