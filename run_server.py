"""Entry point for the AquaWise backend (Flask + Socket.IO).

Reads configuration from the environment, builds the app (which starts the
irrigation reminder scheduler) and serves it with the Socket.IO runner.
"""
from __future__ import annotations

import logging
import os
import sys

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")


def _env_flag_true(name: str) -> bool:
    v = os.getenv(name)
    return bool(v and v.lower() in ("1", "true", "yes", "on"))


def main() -> int:
    from app import create_app, socketio

    app = create_app()

    host = os.getenv("AQUAWISE_HOST", "0.0.0.0")
    port = int(os.getenv("AQUAWISE_PORT", "8000"))
    debug = _env_flag_true("AQUAWISE_DEBUG")

    logging.info("Starting server on %s:%s", host, port)
    logging.info("SocketIO async_mode: %s", socketio.async_mode)

    try:
        socketio.run(
            app,
            host=host,
            port=port,
            debug=debug,
            use_reloader=False,
            allow_unsafe_werkzeug=True,
        )
        logging.info("Server stopped.")
        return 0
    except KeyboardInterrupt:
        logging.info("Server stopped by user.")
        return 0
    except Exception as exc:  # pragma: no cover - top-level runtime errors
        logging.exception("ERROR: Failed to start server: %s", exc)
        return 1
    finally:
        shutdown = app.extensions.get("aquawise_shutdown")
        if shutdown is not None:
            shutdown("server exit")


if __name__ == "__main__":
    raise SystemExit(main())
