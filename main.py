import asyncio
import logging
import sys

import uvicorn

import config
from web import create_app

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
_handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
if config.LOG_TO_FILE:
    config.LOG_DIR.mkdir(parents=True, exist_ok=True)
    _handlers.append(logging.FileHandler(config.LOG_DIR / "jonathan.log"))

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=_handlers,
)
log = logging.getLogger("jonathan")


async def serve() -> None:
    app = create_app()
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=config.WEB_HOST,
            port=config.WEB_PORT,
            log_level="info",
            log_config=None,
        )
    )
    log.info("%s listening on %s:%d", config.ASSISTANT_NAME, config.WEB_HOST, config.WEB_PORT)
    await server.serve()


def main() -> None:
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        log.info("Shutting down")


if __name__ == "__main__":
    main()
