#!/usr/bin/env python3
"""Entry point: serve the debate API, or write a starter config."""

import logging
import os
import sys
from pathlib import Path

from aidebate.config.settings import get_default_config, get_template_config

USAGE = """\
AI Debate System
  python main.py --web                 serve HTTP, SSE and WebSocket endpoints
  python main.py --init-config [PATH]  write a starter YAML config (default debate_config.yaml)

The server reads debate_config.json, or the JSON or YAML file named by AIDEBATE_CONFIG.
PORT or ENVIRONMENT=production start the server without flags."""


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    # Provider clients log every request at INFO
    for noisy in ("openai", "httpx", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def serve() -> None:
    import uvicorn

    from aidebate.web.api import create_app

    config = get_default_config()
    setup_logging(os.environ.get("LOG_LEVEL", config.system.log_level))
    port = int(os.environ.get("PORT", 8000))
    logging.getLogger(__name__).info(
        f"Serving debates on port {port} (docs at /docs, events at /ws/sessions/{{id}})"
    )
    uvicorn.run(create_app(), host="0.0.0.0", port=port, log_level="info")


def init_config(path: Path) -> None:
    if path.exists():
        sys.exit(f"Refusing to overwrite {path}")
    get_template_config().save_to_file(path)
    print(f"Wrote starter config to {path}")


def main() -> None:
    args = sys.argv[1:]
    if "--init-config" in args:
        rest = args[args.index("--init-config") + 1:]
        init_config(Path(rest[0] if rest else "debate_config.yaml"))
    elif "--web" in args or "PORT" in os.environ or os.environ.get("ENVIRONMENT") == "production":
        serve()
    else:
        print(USAGE)


if __name__ == "__main__":
    main()
