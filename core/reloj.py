# core/reloj.py
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def monotonic_ms(self) -> float: ...

    def timestamp(self) -> str: ...


class SystemClock:
    """Reloj real: monotónico para el debounce, ISO-8601 UTC para lastUpdated."""

    def monotonic_ms(self) -> float:
        return time.monotonic() * 1000.0

    def timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


# ==========================================================
# Debounce (flanco de bajada, sin hilos)
# ==========================================================
class Debouncer:
    """
    Un plazo pendiente por clave. Cada schedule() REEMPLAZA el plazo y el
    payload anteriores; nada se encola. poll() dispara lo vencido y flush()
    dispara ya, sin esperar la ventana.
    """

    def __init__(self, clock: Clock, window_ms: float, callback: Callable[[Hashable, Any], None]):
        self._clock = clock
        self._window_ms = float(window_ms)
        self._callback = callback
        self._pending: Dict[Hashable, Tuple[float, Any]] = {}

    @property
    def window_ms(self) -> float:
        return self._window_ms

    def schedule(self, key: Hashable, payload: Any) -> None:
        due = self._clock.monotonic_ms() + self._window_ms
        self._pending[key] = (due, payload)

    def cancel(self, key: Hashable) -> bool:
        return self._pending.pop(key, None) is not None

    def is_pending(self, key: Optional[Hashable] = None) -> bool:
        if key is None:
            return bool(self._pending)
        return key in self._pending

    def pending_payload(self, key: Hashable) -> Any:
        item = self._pending.get(key)
        return item[1] if item else None

    def replace_payload(self, key: Hashable, payload: Any) -> bool:
        """Cambia el payload pendiente sin reiniciar el plazo."""
        if key not in self._pending:
            return False
        due, _ = self._pending[key]
        self._pending[key] = (due, payload)
        return True

    def poll(self) -> int:
        now = self._clock.monotonic_ms()
        vencidos = [k for k, (due, _) in self._pending.items() if due <= now]
        for k in vencidos:
            self._fire(k)
        return len(vencidos)

    def flush(self, key: Optional[Hashable] = None) -> int:
        keys = list(self._pending) if key is None else [key] if key in self._pending else []
        for k in keys:
            self._fire(k)
        return len(keys)

    def _fire(self, key: Hashable) -> None:
        _, payload = self._pending.pop(key)
        logger.debug("debounce vencido key=%s", key)
        self._callback(key, payload)
