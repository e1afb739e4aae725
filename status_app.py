# status_app.py

from datetime import datetime

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from utils.session_store import Session, SessionStore, utcnow
from utils.time_utils import fmt_iso, whole_seconds


def session_to_dict(session: Session, now: datetime) -> dict:
    return {
        "guild_id": session.guild_id,
        "user_id": session.user_id,
        "channel_id": session.channel_id,
        "channel_name": session.channel_name,
        "started_at": fmt_iso(session.started_at),
        "elapsed_seconds": whole_seconds(now - session.started_at),
    }


# ===========================================================
# FastAPI アプリ本体（読み取り専用のステータスAPI）
# ===========================================================
def create_app(store: SessionStore, clock=utcnow):
    app = FastAPI(title="VC Webhook Status")

    # -------------------------------------------------------
    # /api/health
    # -------------------------------------------------------
    @app.get("/api/health")
    async def health():
        return JSONResponse({"ok": True, "open_sessions": len(store)})

    # -------------------------------------------------------
    # /api/sessions
    # -------------------------------------------------------
    @app.get("/api/sessions")
    async def list_sessions():
        now = clock()
        return JSONResponse(
            {"ok": True, "sessions": [session_to_dict(s, now) for s in store.sessions()]}
        )

    # -------------------------------------------------------
    # /api/sessions/{guild_id}/{user_id}
    # -------------------------------------------------------
    @app.get("/api/sessions/{guild_id}/{user_id}")
    async def get_session(guild_id: str, user_id: str):
        session = store.peek(user_id, guild_id=guild_id)
        if session is None:
            return JSONResponse({"ok": False, "error": "session_not_found"}, status_code=404)
        return JSONResponse({"ok": True, "session": session_to_dict(session, clock())})

    return app
