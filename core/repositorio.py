# core/repositorio.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from .almacen import ProjectStore
from .configuracion import DEFAULT_DEBOUNCE_MS
from .modelo import ProjectRecord, create_default_project, new_id, record_fingerprint
from .reloj import Clock, Debouncer, SystemClock

logger = logging.getLogger(__name__)


class ProjectRepository:
    """
    Colección en memoria de proyectos (fuente de verdad durante la sesión)
    más la pasarela de persistencia hacia el store externo.

    - create/rename/confirm_delete: escritura inmediata
    - update_project: escritura diferida (debounce), coalescida por id
    - errores de I/O: se registran y NO se propagan
    """

    def __init__(
        self,
        store: ProjectStore,
        clock: Optional[Clock] = None,
        debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        defaults: Optional[Mapping[str, Any]] = None,
        id_factory: Callable[[], Any] = new_id,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._defaults = dict(defaults or {})
        self._id_factory = id_factory
        self._projects: List[ProjectRecord] = []
        self._committed: Dict[Any, str] = {}
        self._pending_delete: Optional[Any] = None
        self._debouncer = Debouncer(self._clock, debounce_ms, self._commit)

    # ------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------
    def load(self) -> List[ProjectRecord]:
        try:
            raw = self._store.load()
        except Exception:
            logger.exception("Fallo al cargar proyectos; se inicia con lista vacía")
            raw = []

        self._projects = [ProjectRecord.from_dict(d, self._defaults) for d in raw if isinstance(d, Mapping)]
        self._committed = {p.id: record_fingerprint(p) for p in self._projects}
        self._pending_delete = None
        logger.debug("Cargados %d proyectos", len(self._projects))
        return list(self._projects)

    def save_all(self) -> bool:
        payload = [p.to_dict() for p in self._projects]
        try:
            self._store.save_all(payload)
        except Exception:
            logger.exception("No se pudieron guardar los proyectos; se conserva el estado en memoria")
            return False
        return True

    # ------------------------------------------------------
    # Lectura
    # ------------------------------------------------------
    def list_projects(self, most_recent_first: bool = True) -> List[ProjectRecord]:
        if not most_recent_first:
            return list(self._projects)
        return sorted(self._projects, key=lambda p: str(p.last_updated or ""), reverse=True)

    def get(self, project_id: Any) -> Optional[ProjectRecord]:
        return next((p for p in self._projects if p.id == project_id), None)

    def open_project(self, project_id: Any) -> Optional[ProjectRecord]:
        p = self.get(project_id)
        if p is None:
            logger.debug("open_project: id inexistente %s", project_id)
        return p

    # ------------------------------------------------------
    # Escrituras inmediatas
    # ------------------------------------------------------
    def create_project(self, name: Optional[str] = None) -> ProjectRecord:
        p = create_default_project(
            name,
            defaults=self._defaults,
            project_id=self._id_factory(),
            timestamp=self._clock.timestamp(),
        )
        self._projects.append(p)
        if self.save_all():
            self._committed[p.id] = record_fingerprint(p)
        logger.debug("Proyecto creado id=%s", p.id)
        return p

    def rename_project(self, project_id: Any, new_name: str) -> Optional[ProjectRecord]:
        actual = self.get(project_id)
        if actual is None:
            return None

        nombre = str(new_name or "").strip()
        if not nombre:
            logger.debug("rename_project: nombre vacío para %s; se conserva %r", project_id, actual.project_name)
            return actual

        p = replace(actual, project_name=nombre, last_updated=self._clock.timestamp())
        self._put(p)

        # una edición pendiente no debe revertir el nombre al confirmarse
        pendiente = self._debouncer.pending_payload(project_id)
        if pendiente is not None:
            self._debouncer.replace_payload(project_id, replace(pendiente, project_name=nombre))

        if self.save_all():
            self._committed[p.id] = record_fingerprint(p)
        return p

    # ------------------------------------------------------
    # Borrado en dos fases
    # ------------------------------------------------------
    @property
    def pending_delete(self) -> Optional[Any]:
        return self._pending_delete

    def request_delete(self, project_id: Any) -> bool:
        if self.get(project_id) is None:
            return False
        self._pending_delete = project_id
        return True

    def cancel_delete(self) -> None:
        self._pending_delete = None

    def confirm_delete(self) -> bool:
        pid = self._pending_delete
        self._pending_delete = None
        if pid is None or self.get(pid) is None:
            return False

        self._debouncer.cancel(pid)
        self._projects = [p for p in self._projects if p.id != pid]
        self._committed.pop(pid, None)
        self.save_all()
        logger.debug("Proyecto eliminado id=%s", pid)
        return True

    # ------------------------------------------------------
    # Autosave (debounce)
    # ------------------------------------------------------
    def update_project(self, record: ProjectRecord) -> bool:
        """Reinicia la ventana de quietud; solo el último estado se escribe."""
        if self.get(record.id) is None:
            logger.warning("update_project: id %s no existe en el repositorio", record.id)
            return False
        self._put(record)
        self._debouncer.schedule(record.id, record)
        return True

    def poll(self) -> int:
        return self._debouncer.poll()

    def flush(self, project_id: Optional[Any] = None) -> int:
        return self._debouncer.flush(project_id)

    def has_pending_writes(self, project_id: Optional[Any] = None) -> bool:
        return self._debouncer.is_pending(project_id)

    def _commit(self, project_id: Any, record: ProjectRecord) -> None:
        if self.get(project_id) is None:
            return

        fp = record_fingerprint(record)
        if self._committed.get(project_id) == fp:
            logger.debug("Sin cambios en %s; se omite escritura", project_id)
            return

        p = replace(record, last_updated=self._clock.timestamp())
        self._put(p)
        if self.save_all():
            self._committed[project_id] = fp

    def _put(self, record: ProjectRecord) -> None:
        self._projects = [record if p.id == record.id else p for p in self._projects]
