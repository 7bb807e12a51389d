# ui/router.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import streamlit as st

from core.configuracion import ConfigSolar
from core.modelo import DerivedMetrics
from core.repositorio import ProjectRepository
from core.validacion import STEP_TITLES, Step, is_terminal, step_index
from ui.estado import WizardCtx, ctx_advance, ctx_apply_changes, ctx_back, ctx_close, ctx_set_paso, ctx_step_result


logger = logging.getLogger(__name__)


# ====== Contrato de un paso ======
EntradasFn = Callable[[WizardCtx, ConfigSolar], Dict[str, Any]]
ResultadosFn = Callable[[WizardCtx, DerivedMetrics], None]


@dataclass(frozen=True)
class PasoWizard:
    step: Step
    entradas: EntradasFn
    resultados: ResultadosFn

    @property
    def titulo(self) -> str:
        return STEP_TITLES[self.step]


def _sidebar_pasos(ctx: WizardCtx, pasos: List[PasoWizard]) -> None:
    st.sidebar.title("Solar Planner • Wizard")
    for i, p in enumerate(pasos, start=1):
        actual = p.step == ctx.paso_actual
        label = f"{'▶' if actual else '▫️'} {i}. {p.titulo}"
        # saltar a cualquier paso siempre está permitido
        if st.sidebar.button(label, key=f"nav_{p.step.value}", disabled=actual):
            ctx_set_paso(ctx, p.step)
            st.rerun()


def _botones_nav(ctx: WizardCtx, repo: ProjectRepository) -> None:
    res = ctx_step_result(ctx)
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if st.button("⬅️ Back", disabled=step_index(ctx.paso_actual) == 0):
            ctx_back(ctx)
            st.rerun()

    with col2:
        if st.button("Projects list"):
            ctx_close(ctx, repo)
            st.rerun()

    with col3:
        if not is_terminal(ctx.paso_actual):
            if st.button("Next ➡️", disabled=not res.can_advance):
                if ctx_advance(ctx):
                    st.rerun()

    if res.message:
        if res.can_advance:
            st.info(res.message)
        else:
            st.error(res.message)


def render_wizard(pasos: List[PasoWizard], ctx: WizardCtx, repo: ProjectRepository, cfg: ConfigSolar) -> None:
    """
    - Sidebar SIEMPRE navegable (no bloquea)
    - Validación SOLO para avanzar con 'Next' en proyectos nuevos
    """
    _sidebar_pasos(ctx, pasos)

    total = len(pasos)
    i = step_index(ctx.paso_actual)
    st.progress(i / max(total - 1, 1))
    st.subheader(f"Step {i + 1} of {total}: {STEP_TITLES[ctx.paso_actual]}")

    paso = next(p for p in pasos if p.step == ctx.paso_actual)

    # entradas -> registro -> métricas (siempre recalculadas)
    cambios = paso.entradas(ctx, cfg)
    ctx_apply_changes(ctx, repo, cambios)
    paso.resultados(ctx, ctx.derived())

    for a in ctx.derived().advisories:
        st.warning(a)

    # confirma autosaves vencidos aunque el usuario no vuelva a interactuar
    _autosave_periodico(repo, cfg)

    _botones_nav(ctx, repo)


# ====== Autosave en segundo plano ======
MIN_INTERVALO_AUTOSAVE_S = 0.25


def intervalo_autosave(debounce_ms: float) -> float:
    return max(float(debounce_ms) / 1000.0, MIN_INTERVALO_AUTOSAVE_S)


def autosave_tick(repo: ProjectRepository) -> int:
    """Confirma las escrituras cuyo plazo ya venció."""
    n = repo.poll()
    if n:
        logger.debug("Autosave: %d proyecto(s) confirmados", n)
    return n


def _autosave_periodico(repo: ProjectRepository, cfg: ConfigSolar) -> None:
    # fragmento con run_every: se re-ejecuta solo, sin rerun de la página
    st.fragment(run_every=intervalo_autosave(cfg.debounce_ms))(autosave_tick)(repo)
