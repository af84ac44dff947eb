"""
orion/api.py
─────────────────────────────────────────────────────────────────────────────
ORION — Dual-mode API layer

TWO USAGE MODES:
  1. Importable module:
         from orion.api import OrionAPI
         api = OrionAPI(store_path=Path("orion-reports.json"))
         session = api.start_chat()
         api.send_message(session["id"], "médical")

  2. FastAPI HTTP server (web front end via fetch()):
         python -m orion.api                   # default: port 8770
         python -m orion.api --port 9000
         uvicorn orion.api:app --port 8770

ENDPOINTS:
  POST   /chat/sessions                 — start a conversation with ORION AI
  GET    /chat/sessions/{id}            — transcript + state
  POST   /chat/sessions/{id}/messages   — send one message, get the reply
  DELETE /chat/sessions/{id}            — drop a conversation
  GET    /reports                       — history, newest first
  GET    /reports/{id}                  — one report with display fields
  POST   /reports                       — manual report form
  GET    /confirmation                  — confirmation screen payload
  GET    /config, POST /config          — local config
  GET    /health

CORS: localhost-only. Reports stay in the local JSON store.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from orion.config import DEFAULT_CONFIG, load_config, save_config
from orion.confirmation import ConfirmationView
from orion.conversation.session import (
    ConversationSession,
    EmptyMessageError,
    TurnInProgressError,
)
from orion.history import EMPTY_HISTORY_MESSAGE, list_history, select_report
from orion.report_form import DEFAULT_LOCATION, ReportForm, submit_report
from orion.store.report_store import JsonFileReportStore, ReportStore, StoreError

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

# Oldest conversations are dropped past this many
MAX_LIVE_SESSIONS = 100

# Bound at startup; a change only takes effect on restart
RESTART_KEYS = ("store_path", "host", "port")


class SessionNotFoundError(KeyError):
    """No live conversation with that id."""


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class OrionAPI:
    """
    Pure-Python wrapper around the report store and live chat sessions.
    No HTTP layer required — import and call directly.
    """

    def __init__(
        self,
        store_path: Path = Path(DEFAULT_CONFIG["store_path"]),
        store:      Optional[ReportStore] = None,
        config:     Optional[Dict[str, Any]] = None,
    ):
        self.store_path = Path(store_path)
        self.store      = store or JsonFileReportStore(self.store_path)
        self.config     = {**DEFAULT_CONFIG, **(config or {})}
        self._sessions: Dict[str, ConversationSession] = {}
        self._lock      = threading.Lock()

    # ── CHAT ──────────────────────────────────────────────────────────────

    @property
    def live_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _prune(self) -> None:
        """
        Drop finished conversations, then the oldest ones over the cap.
        A finished session stays readable until the next chat starts.
        Caller holds the lock.
        """
        for sid in [sid for sid, s in self._sessions.items() if s.is_finished]:
            del self._sessions[sid]
        while len(self._sessions) >= MAX_LIVE_SESSIONS:
            sid = next(iter(self._sessions))
            del self._sessions[sid]
            logger.info(f"Chat session evicted: {sid}")

    def start_chat(self) -> Dict[str, Any]:
        session = ConversationSession(store=self.store, config=self.config)
        with self._lock:
            self._prune()
            self._sessions[session.id] = session
        logger.info(f"Chat session started: {session.id}")
        return session.snapshot()

    def _session(self, session_id: str) -> ConversationSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_chat(self, session_id: str) -> Dict[str, Any]:
        return self._session(session_id).snapshot()

    def send_message(self, session_id: str, text: str) -> Dict[str, Any]:
        """
        One user turn. Raises EmptyMessageError, TurnInProgressError or
        SessionNotFoundError; store failures come back as notifications.
        """
        outcome = self._session(session_id).send(text)
        return outcome.to_dict()

    def end_chat(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info(f"Chat session closed: {session_id}")
        return removed is not None

    # ── REPORTS ───────────────────────────────────────────────────────────

    def get_reports(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in list_history(self.store)]

    def get_report(self, report_id: str) -> Optional[Dict[str, Any]]:
        entry = select_report(self.store, report_id)
        return entry.to_dict() if entry else None

    def submit_form(self, form: ReportForm) -> Dict[str, Any]:
        """Raises FormValidationError (ValueError) or StoreError."""
        return submit_report(form, self.store).to_dict()

    def confirmation(self) -> Dict[str, Any]:
        view = ConfirmationView(auto_return_after=float(self.config["confirmation_timeout_s"]))
        return view.to_dict()


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# ═══════════════════════════════════════════════════════════════════════════

class MessageRequest(BaseModel):
    text: str


class ReportRequest(BaseModel):
    type:        str = ""
    urgency:     str = "non-urgent"
    location:    str = DEFAULT_LOCATION
    description: str = ""
    photo:       Optional[str] = None


def _build_app(
    store_path: Path = Path(DEFAULT_CONFIG["store_path"]),
    store:      Optional[ReportStore] = None,
    config:     Optional[Dict[str, Any]] = None,
) -> FastAPI:
    """Build and return the FastAPI application instance."""
    _api = OrionAPI(store_path=store_path, store=store, config=config)

    _app = FastAPI(
        title       = "ORION API",
        description = "Incident reporting for JOJ 2026 — chat assistant, manual form, history",
        version     = VERSION,
        docs_url    = "/docs",
        redoc_url   = None,
    )
    _app.state.orion = _api

    _app.add_middleware(
        CORSMiddleware,
        allow_origins     = [
            "http://localhost",
            "http://localhost:8770",
            "http://127.0.0.1",
            "http://127.0.0.1:8770",
            "null",   # file:// origin
        ],
        allow_methods     = ["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers     = ["Content-Type"],
        allow_credentials = False,
    )

    # ── CHAT ────────────────────────────────────────────────────────────

    @_app.post("/chat/sessions", status_code=201, summary="Start a conversation")
    def start_chat():
        """Returns the new session with ORION AI's greeting."""
        return _api.start_chat()

    @_app.get("/chat/sessions/{session_id}", summary="Conversation state")
    def get_chat(session_id: str):
        try:
            return _api.get_chat(session_id)
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")

    @_app.post("/chat/sessions/{session_id}/messages", summary="Send a message")
    def send_message(session_id: str, req: MessageRequest):
        """
        One user turn. The reply comes back immediately; the front end
        handles any typing animation. On confirmation the response carries
        the stored report and a navigation signal to /confirmation.
        """
        try:
            return _api.send_message(session_id, req.text)
        except SessionNotFoundError:
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
        except EmptyMessageError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except TurnInProgressError as exc:
            raise HTTPException(status_code=409, detail=str(exc))

    @_app.delete("/chat/sessions/{session_id}", summary="Close a conversation")
    def end_chat(session_id: str):
        if not _api.end_chat(session_id):
            raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
        return {"status": "ok"}

    # ── REPORTS ─────────────────────────────────────────────────────────

    @_app.get("/reports", summary="Report history")
    def get_reports():
        """All stored reports, newest first, with display fields."""
        try:
            data = _api.get_reports()
        except StoreError as exc:
            raise HTTPException(status_code=503, detail=str(exc))
        result: Dict[str, Any] = {"count": len(data), "reports": data}
        if not data:
            result["message"] = EMPTY_HISTORY_MESSAGE
        return result

    @_app.get("/reports/{report_id}", summary="One report")
    def get_report(report_id: str):
        try:
            data = _api.get_report(report_id)
        except StoreError as exc:
            raise HTTPException(status_code=503, detail=str(exc))
        if data is None:
            raise HTTPException(status_code=404, detail=f"Report not found: {report_id}")
        return data

    @_app.post("/reports", status_code=201, summary="Submit the manual form")
    def post_report(req: ReportRequest):
        form = ReportForm(
            type        = req.type,
            urgency     = req.urgency,
            location    = req.location,
            description = req.description,
            photo       = req.photo,
        )
        try:
            report = _api.submit_form(form)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        except StoreError as exc:
            logger.error(f"Report endpoint error: {exc}")
            raise HTTPException(status_code=503, detail=str(exc))
        return {"report": report, "navigation": {"view": "confirmation", "path": "/confirmation"}}

    @_app.get("/confirmation", summary="Confirmation screen")
    def confirmation():
        return _api.confirmation()

    # ── CONFIG ──────────────────────────────────────────────────────────

    @_app.get("/config", summary="Get config")
    def get_config():
        return {"config": load_config(Path.cwd())}

    @_app.post("/config", summary="Save config")
    def save_config_endpoint(update: Dict[str, Any] = Body(default_factory=dict)):
        """
        Writes orion_config.json. Delays and the confirmation timeout apply
        to chats started after this call; store_path, host and port are
        listed under restart_required and wait for the next start.
        """
        update = update or {}
        try:
            config = load_config(Path.cwd())
            config.update(update)
            save_config(config, Path.cwd())
        except OSError as exc:
            raise HTTPException(status_code=500, detail=str(exc))
        _api.config.update({k: v for k, v in update.items() if k not in RESTART_KEYS})
        restart = sorted(k for k in update if k in RESTART_KEYS)
        return {"status": "ok", "config": config, "restart_required": restart}

    @_app.get("/health", summary="Health check")
    def health():
        return {
            "status":        "ok",
            "store_path":    str(_api.store_path),
            "store_exists":  _api.store_path.exists(),
            "live_sessions": _api.live_sessions,
            "version":       VERSION,
        }

    return _app


# Module-level app instance — used by uvicorn orion.api:app
app = _build_app()


# ═══════════════════════════════════════════════════════════════════════════
# CLI ENTRYPOINT — python -m orion.api
# ═══════════════════════════════════════════════════════════════════════════

def serve(host: str = "127.0.0.1", port: int = 8770, store_path: Optional[Path] = None) -> None:
    import uvicorn

    server_app = _build_app(store_path=store_path or Path(DEFAULT_CONFIG["store_path"]))

    print(f"""
+--------------------------------------------------+
|   ORION API Server v{VERSION}                        |
+--------------------------------------------------+
|  Local:    http://{host}:{port}
|  Store:    {store_path or DEFAULT_CONFIG["store_path"]}
|  Docs:     http://{host}:{port}/docs
|  Health:   http://{host}:{port}/health
+--------------------------------------------------+
""")

    uvicorn.run(server_app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        prog        = "orion.api",
        description = "ORION API Server",
    )
    parser.add_argument("--port",  type=int, default=8770,
                        help="Port to bind (default: 8770)")
    parser.add_argument("--store", type=str, default=DEFAULT_CONFIG["store_path"],
                        help="Report store JSON file (default: orion-reports.json)")
    parser.add_argument("--host",  type=str, default="127.0.0.1",
                        help="Host to bind — DO NOT change to 0.0.0.0 on shared networks")
    args = parser.parse_args()

    serve(host=args.host, port=args.port, store_path=Path(args.store))
