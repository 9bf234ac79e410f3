# =============================================================================
# main.py  —  Entry Point for the Tiben MCP Server
# =============================================================================
#
# HOW TO RUN:
#   python main.py            (or the installed `tiben-mcp` script)
#
# WHAT HAPPENS:
#   1. Loads environment variables from .env (TIBEN_API_BASE, if set)
#   2. Imports the FastMCP server (tools/mcp_server.py), which builds its
#      BackendConfig from the environment at import time
#   3. Serves the three tools over stdio until the host disconnects
#
# Hosts usually launch this as a subprocess, e.g. in an MCP client config:
#   {"command": "tiben-mcp"}
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

# Must run BEFORE importing the server: the dispatcher reads TIBEN_API_BASE
# when tools.mcp_server is first imported.
load_dotenv()

from tools.mcp_server import SERVER_NAME, dispatcher, mcp  # noqa: E402


def main() -> None:
    """Run the MCP server over stdio."""
    logging.info(
        "%s starting (backend: %s)", SERVER_NAME, dispatcher.backend.config.api_base
    )
    try:
        mcp.run()
    except KeyboardInterrupt:
        pass
    except Exception:
        logging.exception("Server error")
        sys.exit(1)


if __name__ == "__main__":
    main()
