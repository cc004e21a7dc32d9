import logging
import os
import socket

from dyntable.logging_config import configure_logging
from dyntable.ui.dash_app import create_dash_app

configure_logging()
logger = logging.getLogger("dyntable.app")

# DYNTABLE_CONFIG_ROOT picks the config directory (default ./config)
app = create_dash_app()
server = app.server


def find_free_port(start_port: int, attempts: int = 100) -> int:
    """First port at or above start_port with nothing listening on localhost."""
    for port in range(start_port, start_port + attempts):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            if s.connect_ex(("localhost", port)) != 0:
                return port
    return start_port


def main() -> None:
    preferred_port = int(os.getenv("PORT", "8050"))
    port = find_free_port(preferred_port)
    debug = os.getenv("DEBUG", "0") == "1"

    if port != preferred_port:
        logger.warning("Preferred port taken", extra={"preferred_port": preferred_port, "port": port})

    logger.info("Starting table host", extra={"port": port, "debug": debug})
    app.run(host="0.0.0.0", port=port, debug=debug)


if __name__ == "__main__":
    main()
