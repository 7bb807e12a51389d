# app.py
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

import streamlit as st

# === asegurar imports del repo ===
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.almacen import JsonFileStore
from core.configuracion import ConfigSolar, cargar_configuracion
from core.repositorio import ProjectRepository
from core.validacion import Step
from ui import baterias, consumo_energetico, datos_proyecto, inversor, paneles, resumen
from ui.estado import ctx_get
from ui.proyectos import render_lista
from ui.router import PasoWizard, render_wizard

logger = logging.getLogger(__name__)


pasos = [
    PasoWizard(Step.PROJECT_DETAILS, datos_proyecto.entradas, datos_proyecto.resultados),
    PasoWizard(Step.ENERGY_CONSUMPTION, consumo_energetico.entradas, consumo_energetico.resultados),
    PasoWizard(Step.INVERTER_SIZING, inversor.entradas, inversor.resultados),
    PasoWizard(Step.BATTERY_SIZING, baterias.entradas, baterias.resultados),
    PasoWizard(Step.PANEL_SIZING, paneles.entradas, paneles.resultados),
    PasoWizard(Step.SUMMARY, resumen.entradas, resumen.resultados),
]


def _configurar_logging() -> None:
    nivel = os.environ.get("SOLAR_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, nivel, logging.INFO),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _repositorio(cfg: ConfigSolar) -> ProjectRepository:
    """Un repositorio por sesión; load() una sola vez al iniciar."""
    if "repo" not in st.session_state:
        repo = ProjectRepository(
            JsonFileStore(cfg.store_path),
            debounce_ms=cfg.debounce_ms,
            defaults=cfg.defaults,
        )
        repo.load()
        st.session_state["repo"] = repo
        logger.info("Proyectos cargados desde %s", cfg.store_path)
    return st.session_state["repo"]


def main() -> None:
    _configurar_logging()
    st.set_page_config(page_title="Solar Planner", layout="wide")

    try:
        cfg = cargar_configuracion()
    except (OSError, ValueError) as e:
        st.error(f"Invalid configuration: {e}")
        st.stop()

    repo = _repositorio(cfg)
    ctx = ctx_get(st)
    ctx.catalogo_kva = tuple(cfg.inverter_sizes_kva)

    # confirma autosaves vencidos en cada rerun
    repo.poll()

    if ctx.activo:
        render_wizard(pasos, ctx, repo, cfg)
    else:
        render_lista(ctx, repo)


if __name__ == "__main__":
    main()
