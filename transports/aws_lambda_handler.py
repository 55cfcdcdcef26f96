"""Serverless entrypoint.

``app`` is the ASGI application for platforms that import it directly, and
``handler`` adapts it to AWS Lambda through Mangum. The database handle is
established on the first request and then reused while the container is warm.
"""

from __future__ import annotations

from mangum import Mangum

from app.main import create_app

app = create_app()

# lifespan off: warm containers keep the connection; nothing to tear down
handler = Mangum(app, lifespan="off")
