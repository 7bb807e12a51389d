# ui/resumen.py
from __future__ import annotations

from datetime import date
from typing import Any, Dict

import pandas as pd
import streamlit as st

from core.configuracion import ConfigSolar
from core.modelo import DerivedMetrics
from core.sizing import summary_rows

DISCLAIMER = (
    "This calculator provides an estimate for planning purposes. "
    "Consult a qualified professional for detailed system design and installation."
)


def entradas(ctx, cfg: ConfigSolar) -> Dict[str, Any]:
    # paso de solo lectura
    return {}


def resultados(ctx, d: DerivedMetrics) -> None:
    r = ctx.record
    st.markdown(f"### Project Report: {r.project_name}")
    if r.client_name:
        st.write(f"Prepared for: {r.client_name}")
    st.write(f"Date: {date.today():%Y-%m-%d}")

    tabla = pd.DataFrame(summary_rows(r, d), columns=["Item", "Value", "Unit"])
    st.dataframe(tabla, hide_index=True, use_container_width=True)
    st.caption(DISCLAIMER)
