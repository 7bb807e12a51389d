# ui/datos_proyecto.py
from __future__ import annotations

from typing import Any, Dict

import streamlit as st

from core.configuracion import ConfigSolar
from core.modelo import DerivedMetrics


def entradas(ctx, cfg: ConfigSolar) -> Dict[str, Any]:
    st.markdown("### Project details")
    st.caption("Start by defining the project scope.")

    r = ctx.record
    col1, col2 = st.columns(2)
    with col1:
        nombre = st.text_input("Project Name", value=r.project_name, key=f"projectName_{ctx.sesion_id}")
    with col2:
        cliente = st.text_input("Client Name", value=r.client_name, key=f"clientName_{ctx.sesion_id}")

    return {"projectName": nombre, "clientName": cliente}


def resultados(ctx, d: DerivedMetrics) -> None:
    if ctx.record.last_updated:
        st.caption(f"Last saved: {ctx.record.last_updated}")
