# core/rutas.py
from __future__ import annotations

import os
from pathlib import Path


def base_dir_seguro() -> Path:
    """Devuelve una base estable en Streamlit / Windows / consola."""
    try:
        return Path(__file__).resolve().parents[1]
    except Exception:
        return Path(os.getcwd()).resolve()


def num(x: float, nd: int = 2) -> str:
    return f"{x:,.{nd}f}"


def kva(x: float) -> str:
    return f"{x:g} kVA" if x else "-"


def watts(x: float) -> str:
    return f"{x:,.0f} W"
