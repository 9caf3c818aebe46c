import json, time, logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlparse
import httpx
from .config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

def host_of(url: str) -> str:
    return urlparse(url).netloc

class ProbeOutcome(str, Enum):
    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"

@dataclass(frozen=True)
class ProbeResult:
    url: str
    healthy: bool
    response_code: int
    response_time_ms: int
    outcome: ProbeOutcome
    checked_at: float
    error: Optional[str] = None

class Checker:
    """Issues one GET per endpoint and folds every outcome into a ProbeResult."""

    def __init__(self, settings: Settings = default_settings,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def client(self, max_connections: int = 100) -> httpx.AsyncClient:
        """Build the client shared by all probes of one round."""
        limits = httpx.Limits(max_connections=max(1, max_connections),
                              max_keepalive_connections=max(1, max_connections))
        return httpx.AsyncClient(
            limits=limits,
            transport=self._transport,
            headers={"User-Agent": self.settings.UA, "Accept": "text/html,*/*"},
            follow_redirects=True,
            timeout=httpx.Timeout(self.settings.TOTAL_TIMEOUT_S,
                                  connect=self.settings.CONNECT_TIMEOUT_S,
                                  read=self.settings.READ_TIMEOUT_S),
        )

    async def check_one(self, client: httpx.AsyncClient, url: str) -> ProbeResult:
        started = time.monotonic()
        code = 0
        err = None
        try:
            # Only the status line and headers are awaited; the body is never read.
            async with client.stream("GET", url) as r:
                code = r.status_code
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # A status seen before a failure while closing the stream is not a response.
            code = 0
            err = f"{type(e).__name__}: {e}"
        except Exception as e:
            logger.exception(f"Unexpected error probing {url}")
            code = 0
            err = f"{type(e).__name__}: {e}"
        elapsed_ms = int((time.monotonic() - started) * 1000)

        if err is not None:
            outcome = ProbeOutcome.TRANSPORT_ERROR
        elif 200 <= code < 300:
            outcome = ProbeOutcome.SUCCESS
        else:
            outcome = ProbeOutcome.HTTP_ERROR

        res = ProbeResult(url=url,
                          healthy=outcome is ProbeOutcome.SUCCESS,
                          response_code=code,
                          response_time_ms=elapsed_ms,
                          outcome=outcome,
                          checked_at=time.time(),
                          error=err)

        log = logger.warning if err else logger.info
        log(json.dumps({
            "outcome": outcome.value,
            "http": code or None,
            "elapsed_ms": elapsed_ms,
            "host": host_of(url),
            "url": url,
            "error": err,
        }))
        return res
