# core/almacen.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)

STORE_SLOT = "solarProjects"


class ProjectStore(Protocol):
    """Un único slot con la lista completa de proyectos serializada."""

    def load(self) -> List[Dict[str, Any]]: ...

    def save_all(self, records: List[Dict[str, Any]]) -> None: ...


def dumps_records(records: List[Dict[str, Any]]) -> str:
    # formato fijo: save_all(load()) debe reproducir los mismos bytes
    return json.dumps(records, ensure_ascii=False, indent=2)


def loads_records(raw: str) -> List[Dict[str, Any]]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"El slot debe contener una lista, llegó {type(data).__name__}")
    return [r for r in data if isinstance(r, dict)]


# ==========================================================
# Archivo JSON
# ==========================================================
class JsonFileStore:
    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            return loads_records(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("No se pudo leer %s (%s); se inicia con lista vacía", self.path, e)
            return []

    def save_all(self, records: List[Dict[str, Any]]) -> None:
        """Reemplazo atómico: temporal en el mismo directorio + os.replace."""
        raw = dumps_records(records)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(raw)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
        logger.debug("Guardados %d proyectos en %s", len(records), self.path)


# ==========================================================
# Memoria (tests / sesión efímera)
# ==========================================================
class MemoryStore:
    def __init__(self, raw: Optional[str] = None):
        self.slot: Optional[str] = raw
        self.writes = 0

    def load(self) -> List[Dict[str, Any]]:
        if self.slot is None:
            return []
        try:
            return loads_records(self.slot)
        except ValueError as e:
            logger.warning("Slot en memoria corrupto (%s); lista vacía", e)
            return []

    def save_all(self, records: List[Dict[str, Any]]) -> None:
        self.slot = dumps_records(records)
        self.writes += 1
