import logging

import uvicorn

from fileflow.config_loader import load_settings
from fileflow.server import build_app

if __name__ == "__main__":
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='[%(asctime)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True  # Force reconfiguration to avoid duplicate handlers
    )

    app = build_app(settings)
    uvicorn.run(app, host=settings.http_host, port=settings.http_port)
