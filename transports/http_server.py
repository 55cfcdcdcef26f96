"""Long-running HTTP server; connects to the store at startup."""

from __future__ import annotations

import os

import uvicorn

from app.main import create_app

app = create_app(eager_connect=True)


if __name__ == "__main__":  # pragma: no cover - manual run helper
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "5000"))
    reload = os.getenv("DEV_RELOAD", "false").lower() in {"1", "true", "yes"}
    uvicorn.run(
        "transports.http_server:app",
        host=host,
        port=port,
        reload=reload,
    )
