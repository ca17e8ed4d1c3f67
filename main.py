from __future__ import annotations

from assistant_relay.app.api.app import create_app

app = create_app()
