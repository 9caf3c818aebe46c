import os, time, asyncio, logging, contextlib
from typing import Optional
import httpx
from fastapi import FastAPI, WebSocket
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from .config import Settings, settings as default_settings
from .endpoints import load_endpoints
from .checker import Checker
from .state import StateStore, snapshot_payload
from .broadcaster import Broadcaster
from .scheduler import RoundScheduler
from .ui import HTML as INDEX_HTML

logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    settings = settings or default_settings

    endpoints = load_endpoints(settings.CONFIG_PATH)
    if not endpoints:
        logger.warning(f"No endpoints configured (config: {settings.CONFIG_PATH}); "
                       "the dashboard will stay empty")

    store = StateStore(endpoints)
    broadcaster = Broadcaster(store.snapshot, send_timeout_s=settings.SEND_TIMEOUT_S)
    scheduler = RoundScheduler(endpoints, Checker(settings, transport=transport),
                               store, broadcaster, settings)
    app_start_time = time.time()

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        store.restore(settings.state_file)
        task = asyncio.create_task(scheduler.run_forever(), name="status-rounds")
        try:
            yield
        finally:
            scheduler.stop()
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            await broadcaster.drain()

    app = FastAPI(title="StatusPulse", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.broadcaster = broadcaster
    app.state.scheduler = scheduler

    @app.get("/status-json", response_class=JSONResponse)
    def status_json():
        """Current snapshot, sorted by url"""
        return JSONResponse(snapshot_payload(store.snapshot()))

    @app.get("/health", response_class=JSONResponse)
    def health():
        return JSONResponse({
            "ok": True,
            "uptime_s": int(time.time() - app_start_time),
            "endpoints_count": len(endpoints),
            "subscribers": broadcaster.subscriber_count,
            "rounds_completed": scheduler.rounds_completed,
        })

    @app.websocket("/ws")
    async def ws_status(websocket: WebSocket):
        """Initial snapshot on connect, then one per round; inbound messages are ignored."""
        await websocket.accept()
        if not await broadcaster.subscribe(websocket):
            return
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            broadcaster.unsubscribe(websocket)

    if os.path.isdir(settings.STATIC_PATH):
        app.mount("/", StaticFiles(directory=settings.STATIC_PATH, html=True), name="static")
    else:
        @app.get("/", response_class=HTMLResponse)
        def index():
            """Embedded dashboard, used when no static directory is present"""
            return HTMLResponse(INDEX_HTML)

    return app
