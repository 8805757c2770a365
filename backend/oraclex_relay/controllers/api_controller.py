from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from oraclex_relay.api.state import AppState
from oraclex_relay.errors import RelayError
from oraclex_relay.infrastructure.logging.logging import get_logger
from oraclex_relay.infrastructure.utils.config import RelayConfig
from oraclex_relay.services.monitoring.metrics import build_status

JsonDict = Dict[str, Any]

APP_NAME = "OracleX Trading Relay"
APP_VERSION = "3.0.0"

log = get_logger("api")


# --------- Schemas ---------
class MarketDataPayload(BaseModel):
    """Shape is checked by the stores so a bad batch is a 400, not a 422."""

    market_data: Any = None


class ApprovePayload(BaseModel):
    cmd_id: Optional[str] = None
    lot: Optional[float] = None


# --------- Dependencies ---------
def get_state(request: Request) -> AppState:
    state = getattr(request.app.state, "relay", None)
    if state is None:
        raise RuntimeError("Relay state not initialized. Build the app with create_app().")
    return state


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    log.warning("request_rejected", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})


def create_app(state: AppState, config: Optional[RelayConfig] = None) -> FastAPI:
    config = config or RelayConfig()

    app = FastAPI(title=APP_NAME, version=APP_VERSION)
    app.state.relay = state

    origins = list(config.api.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RelayError, _relay_error_handler)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    # --------- Service ---------
    @app.get("/")
    def root(s: AppState = Depends(get_state)) -> JsonDict:
        return {
            "status": "OK",
            "name": APP_NAME,
            "version": APP_VERSION,
            "uptime": max(0, int(s.clock() - s.started_at)),
        }

    @app.get("/health")
    def health() -> JsonDict:
        return {"ok": True, "status": "healthy"}

    @app.get("/status")
    def status(s: AppState = Depends(get_state)) -> JsonDict:
        return build_status(s).to_dict()

    # --------- Market state ---------
    @app.post("/update-market-state")
    def update_market_state(payload: MarketDataPayload, s: AppState = Depends(get_state)) -> JsonDict:
        total = s.store.upsert(payload.market_data)
        return {
            "success": True,
            "message": "Market state updated",
            "symbols_merged": total,
            "dashboard_ready": total > 0,
        }

    @app.post("/data-update")
    def data_update(payload: MarketDataPayload, s: AppState = Depends(get_state)) -> JsonDict:
        total = s.store.replace_all(payload.market_data)
        return {"ok": True, "message": "Data received (legacy)", "symbols": total}

    @app.post("/market-analysis")
    def market_analysis(payload: MarketDataPayload, s: AppState = Depends(get_state)) -> JsonDict:
        cached = s.cache.put(payload.market_data)
        s.store.touch_if_unset()
        return {"success": True, "message": "Dashboard features cached", "symbols_cached": cached}

    @app.get("/get-market-state")
    def get_market_state(s: AppState = Depends(get_state)) -> JsonDict:
        return s.merger.build_view().to_dict()

    # --------- Signals ---------
    @app.post("/submit-signal")
    def submit_signal(payload: JsonDict = Body(...), s: AppState = Depends(get_state)) -> JsonDict:
        result = s.workflow.submit(payload)
        return {
            "status": result.status,
            "cmd_id": result.cmd_id,
            "auto_approve_in_sec": result.auto_approve_in_sec,
        }

    @app.post("/approve-signal")
    def approve_signal(payload: ApprovePayload, s: AppState = Depends(get_state)) -> JsonDict:
        cmd = s.workflow.approve(payload.cmd_id, lot=payload.lot)
        return {"ok": True, "approved": True, "status": "APPROVED", "cmd_id": cmd.cmd_id, "command": cmd.to_dict()}

    @app.get("/pending-approvals")
    def pending_approvals(s: AppState = Depends(get_state)) -> JsonDict:
        items = [
            {
                "cmd_id": p.cmd_id,
                "symbol": p.symbol,
                "action": p.action,
                "status": p.status.value,
                "created_at": p.created_at,
                "auto_approve_in_sec": p.auto_approve_in_sec,
            }
            for p in s.workflow.list_pending()
        ]
        return {"total": len(items), "items": items}

    # --------- Execution agent ---------
    @app.get("/last-signal")
    def last_signal(s: AppState = Depends(get_state)) -> JsonDict:
        cmd = s.queue.pop_next()
        if cmd is None:
            return {"action": "NONE"}
        return cmd.to_dict()

    @app.post("/execution-receipt")
    def execution_receipt(payload: JsonDict = Body(...), s: AppState = Depends(get_state)) -> JsonDict:
        receipt = s.receipts.record(payload)
        return {"ok": True, "receipt_id": receipt.cmd_id}

    @app.get("/receipts")
    def receipts(limit: int = 100, s: AppState = Depends(get_state)) -> JsonDict:
        items = [r.model_dump() for r in s.receipts.recent(limit=limit)]
        return {"ok": True, "total": s.receipts.size, "receipts": items}

    @app.post("/flush-queue")
    def flush_queue(s: AppState = Depends(get_state)) -> JsonDict:
        dropped = s.queue.flush()
        return {"status": "FLUSHED", "ok": True, "dropped": dropped}
