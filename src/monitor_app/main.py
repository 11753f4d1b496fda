# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
AI Limits Monitor - Main entry point.

This module handles:
- CLI argument parsing
- .env loading
- Logging configuration
- Application startup

The actual FastAPI application is created via app_factory.create_app().
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

import colorlog
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI Limits Monitor Server")
    parser.add_argument(
        "--host", type=str, default="127.0.0.1", help="Host to bind the server to."
    )
    parser.add_argument("--port", type=int, default=8080, help="Port to run the server on.")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding settings.json, .env files and logs (default: cwd).",
    )
    return parser


def load_env_files(root_dir: Path) -> List[str]:
    """Load .env first, then any other *.env files without overriding it."""
    load_dotenv(root_dir / ".env")
    for env_file in sorted(root_dir.glob("*.env")):
        if env_file.name != ".env":
            load_dotenv(env_file, override=False)
    return [env_file.name for env_file in root_dir.glob("*.env")]


class LibraryDebugFilter(logging.Filter):
    def filter(self, record):
        return record.levelno == logging.DEBUG and record.name.startswith("limits_monitor")


def configure_logging(log_dir: Path) -> None:
    """Colored console output plus info and library-debug log files."""
    log_dir.mkdir(parents=True, exist_ok=True)

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )

    info_file_handler = logging.FileHandler(log_dir / "monitor.log", encoding="utf-8")
    info_file_handler.setLevel(logging.INFO)
    info_file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    debug_file_handler = logging.FileHandler(log_dir / "monitor_debug.log", encoding="utf-8")
    debug_file_handler.setLevel(logging.DEBUG)
    debug_file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    debug_file_handler.addFilter(LibraryDebugFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(info_file_handler)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(debug_file_handler)

    # Silence noisy loggers
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    start_time = time.time()
    root_dir = (args.data_dir or Path.cwd()).resolve()

    console = Console()
    env_names = load_env_files(root_dir)
    if env_names:
        console.print(f"📁 Loaded {len(env_names)} .env file(s): {', '.join(env_names)}")

    console.print(
        Panel.fit(
            f"[bold cyan]AI Limits Monitor[/bold cyan]\n"
            f"Listening on {args.host}:{args.port}\n"
            f"Data directory: {root_dir}",
            border_style="cyan",
        )
    )

    configure_logging(root_dir / "logs")

    with console.status("[dim]Loading server components...", spinner="dots"):
        import uvicorn

        from monitor_app.app_factory import create_app

        app = create_app(data_dir=root_dir)

    console.print(f"✓ Server ready in {time.time() - start_time:.2f}s")
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
