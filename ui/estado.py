# ui/estado.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.edicion import apply_field_updates, sync_record
from core.modelo import DerivedMetrics, ProjectRecord, new_id
from core.repositorio import ProjectRepository
from core.sizing import derive_metrics
from core.validacion import STEPS, Step, StepResult, as_step, next_step, previous_step, validate_step

logger = logging.getLogger(__name__)


# ==========================================================
# Contexto global del Wizard
# ==========================================================
@dataclass
class WizardCtx:
    # ------------------------------------------------------
    # Navegación
    # ------------------------------------------------------
    paso_actual: Step = Step.PROJECT_DETAILS
    errores: List[str] = field(default_factory=list)

    # ------------------------------------------------------
    # Proyecto activo (copia de trabajo)
    # ------------------------------------------------------
    record: Optional[ProjectRecord] = None
    is_new: bool = False
    # sufijo de keys de widgets: cambia en cada apertura
    sesion_id: str = ""

    # ------------------------------------------------------
    # Lista de proyectos: renombrado en línea
    # ------------------------------------------------------
    editing_name_id: Optional[Any] = None

    # catálogo de inversores vigente (config)
    catalogo_kva: tuple = ()

    @property
    def activo(self) -> bool:
        return self.record is not None

    def derived(self) -> DerivedMetrics:
        if self.record is None:
            return DerivedMetrics()
        if self.catalogo_kva:
            return derive_metrics(self.record, self.catalogo_kva)
        return derive_metrics(self.record)


# ==========================================================
# Obtener contexto
# ==========================================================
def ctx_get(st) -> WizardCtx:
    """
    Obtiene el contexto desde session_state.
    Si no existe, lo crea automáticamente.
    """
    if "wizard_ctx" not in st.session_state:
        st.session_state["wizard_ctx"] = WizardCtx()
    return st.session_state["wizard_ctx"]


# ==========================================================
# Navegación entre pasos
# ==========================================================
def ctx_step_result(ctx: WizardCtx) -> StepResult:
    if ctx.record is None:
        return StepResult(valid=False, message="No project is open.")
    return validate_step(ctx.record, ctx.derived(), ctx.paso_actual, ctx.is_new)


def ctx_advance(ctx: WizardCtx) -> bool:
    """Avanza solo por petición explícita y si el validador lo permite."""
    res = ctx_step_result(ctx)
    ctx.errores = [res.message] if res.message else []
    if not res.can_advance:
        logger.debug("Avance bloqueado en %s: %s", ctx.paso_actual.value, res.message)
        return False
    ctx.paso_actual = next_step(ctx.paso_actual)
    ctx.errores = []
    return True


def ctx_back(ctx: WizardCtx) -> None:
    ctx.paso_actual = previous_step(ctx.paso_actual)
    ctx.errores = []


def ctx_set_paso(ctx: WizardCtx, paso: "Step | str | int") -> None:
    # saltar por selección explícita siempre está permitido
    ctx.paso_actual = as_step(paso)
    ctx.errores = []


# ==========================================================
# Sesión de edición
# ==========================================================
def ctx_open(ctx: WizardCtx, repo: ProjectRepository, project_id: Any, is_new: bool = False) -> bool:
    # cerrar la sesión anterior sin perder la última edición
    if ctx.record is not None and ctx.record.id != project_id:
        repo.flush(ctx.record.id)

    p = repo.open_project(project_id)
    if p is None:
        return False

    ctx.record = sync_record(p)
    ctx.sesion_id = new_id()
    if ctx.record is not p:
        repo.update_project(ctx.record)
    ctx.is_new = bool(is_new)
    ctx.paso_actual = STEPS[0]
    ctx.errores = []
    return True


def ctx_close(ctx: WizardCtx, repo: ProjectRepository) -> None:
    """Vuelve a la lista. La escritura pendiente se confirma antes de soltar el registro."""
    if ctx.record is not None:
        repo.flush(ctx.record.id)
    ctx.record = None
    ctx.is_new = False
    ctx.paso_actual = STEPS[0]
    ctx.errores = []


def ctx_apply_changes(ctx: WizardCtx, repo: ProjectRepository, changes: Dict[str, Any]) -> bool:
    """Aplica cambios de la UI; si el registro cambió, programa el autosave."""
    if ctx.record is None or not changes:
        return False
    nuevo = apply_field_updates(ctx.record, changes)
    return ctx_replace_record(ctx, repo, nuevo)


def ctx_replace_record(ctx: WizardCtx, repo: ProjectRepository, nuevo: ProjectRecord) -> bool:
    if ctx.record is None or nuevo == ctx.record:
        return False
    ctx.record = nuevo
    repo.update_project(nuevo)
    return True
