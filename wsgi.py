"""WSGI entry point for the FERS retirement planner.

Run directly for a development server: ``python wsgi.py --port 8080``.
"""

import os
import sys

from fers_planner import create_app
from fers_planner.config import get_global_settings

app = create_app()


def resolve_port(argv, environ, default=5000):
    """Port from ``--port N``, else ``$PORT``, else the default."""
    if "--port" in argv:
        position = argv.index("--port")
        if position + 1 < len(argv):
            return int(argv[position + 1])
    return int(environ.get("PORT", default))


if __name__ == "__main__":
    app.run(
        debug=get_global_settings().flask_env == "development",
        host="0.0.0.0",
        port=resolve_port(sys.argv[1:], os.environ),
    )
