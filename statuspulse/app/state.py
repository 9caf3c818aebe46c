"""Per-endpoint health state, sorted snapshots and best-effort persistence."""

import os, json, logging, tempfile, threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .checker import ProbeResult

logger = logging.getLogger(__name__)

@dataclass
class HealthState:
    healthy: bool = True
    last_healthy_at: float = 0.0
    last_unhealthy_at: float = 0.0
    response_code: int = 0
    response_time_ms: int = 0

    def apply(self, result: ProbeResult) -> None:
        self.healthy = result.healthy
        self.response_code = result.response_code
        self.response_time_ms = result.response_time_ms
        # Only the timestamp matching the outcome moves, and never backwards.
        if result.healthy:
            self.last_healthy_at = max(self.last_healthy_at, result.checked_at)
        else:
            self.last_unhealthy_at = max(self.last_unhealthy_at, result.checked_at)

@dataclass(frozen=True)
class StatusView:
    url: str
    healthy: bool
    last_healthy: int
    last_unhealthy: int
    response_code: int
    response_time: int

    @classmethod
    def of(cls, url: str, state: HealthState) -> "StatusView":
        return cls(url=url,
                   healthy=state.healthy,
                   last_healthy=int(state.last_healthy_at),
                   last_unhealthy=int(state.last_unhealthy_at),
                   response_code=state.response_code,
                   response_time=state.response_time_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "healthy": self.healthy,
            "lastHealthy": self.last_healthy,
            "lastUnhealthy": self.last_unhealthy,
            "responseCode": self.response_code,
            "responseTime": self.response_time,
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "StatusView":
        if not isinstance(raw["url"], str):
            raise TypeError(f"url must be a string, got {type(raw['url']).__name__}")
        if not isinstance(raw["healthy"], bool):
            raise TypeError(f"healthy must be a boolean, got {raw['healthy']!r}")
        return cls(url=raw["url"],
                   healthy=raw["healthy"],
                   last_healthy=int(raw.get("lastHealthy", 0)),
                   last_unhealthy=int(raw.get("lastUnhealthy", 0)),
                   response_code=int(raw.get("responseCode", 0)),
                   response_time=int(raw.get("responseTime", 0)))

StatusSnapshot = Tuple[StatusView, ...]

def snapshot_payload(snapshot: StatusSnapshot) -> List[Dict[str, Any]]:
    """Wire form shared by the JSON endpoint, the WebSocket push and the state file."""
    return [view.to_dict() for view in snapshot]

class StateStore:
    """
    Owns the health map for the configured endpoints.

    Every mutation and every snapshot happens under one lock, so a reader sees
    either the state before a round or the state after it.
    """

    def __init__(self, urls: Iterable[str]):
        self._lock = threading.Lock()
        self._states: Dict[str, HealthState] = {url: HealthState() for url in urls}

    @property
    def urls(self) -> List[str]:
        with self._lock:
            return sorted(self._states)

    def _snapshot_locked(self) -> StatusSnapshot:
        return tuple(StatusView.of(url, self._states[url]) for url in sorted(self._states))

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def apply_round(self, results: Iterable[ProbeResult]) -> StatusSnapshot:
        """Apply a complete round and return the post-round snapshot."""
        with self._lock:
            for result in results:
                state = self._states.get(result.url)
                if state is None:
                    logger.warning(f"Ignoring result for unconfigured endpoint {result.url}")
                    continue
                state.apply(result)
            return self._snapshot_locked()

    def persist(self, snapshot: StatusSnapshot, path: str | Path) -> bool:
        """Write the snapshot to ``path``; a missing directory is created and the write retried once."""
        p = Path(path)
        payload = json.dumps(snapshot_payload(snapshot), indent=2)
        try:
            _write_atomic(p, payload)
            return True
        except FileNotFoundError as e:
            logger.warning(f"Directory missing while saving status state: {e}")
        except OSError as e:
            logger.error(f"Error saving status state: {e}")
            return False

        logger.info(f"Creating directory: {p.parent}")
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Error creating directory {p.parent}: {e}")
            return False
        try:
            _write_atomic(p, payload)
            return True
        except OSError as e:
            logger.error(f"Retry saving status state failed: {e}")
            return False

    def restore(self, path: str | Path) -> Optional[StatusSnapshot]:
        """Load a persisted snapshot over the defaults; only configured URLs are taken."""
        p = Path(path)
        try:
            raw = json.loads(p.read_text(encoding="utf-8"))
            views = [StatusView.from_dict(item) for item in raw]
        except FileNotFoundError:
            logger.info(f"No saved status state at {p}, starting with defaults")
            return None
        except (OSError, ValueError, TypeError, KeyError) as e:
            logger.error(f"Error loading status state from {p}: {e}")
            return None

        restored = 0
        with self._lock:
            for view in views:
                if view.url not in self._states:
                    continue
                self._states[view.url] = HealthState(
                    healthy=view.healthy,
                    last_healthy_at=float(view.last_healthy),
                    last_unhealthy_at=float(view.last_unhealthy),
                    response_code=view.response_code,
                    response_time_ms=view.response_time,
                )
                restored += 1
            snap = self._snapshot_locked()
        logger.info(f"Restored status state for {restored} endpoints from {p}")
        return snap

def _write_atomic(path: Path, payload: str) -> None:
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.write("\n")
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
