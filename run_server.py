"""Start the Vision Architect Studio API with uvicorn from any working directory."""
from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
import uvicorn

ROOT_DIR = Path(__file__).resolve().parent

logger = logging.getLogger("run_server")


def main() -> None:
    """Load ``.env`` and serve ``main:app`` with the repository root as the app directory."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Run the Vision Architect Studio API server")
    parser.add_argument("--host", default="127.0.0.1", help="Host interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Root log level (default: $LOG_LEVEL or INFO)",
    )
    args = parser.parse_args()

    level = args.log_level.upper()
    logging.basicConfig(level=level)

    if not os.getenv("OPENAI_API_KEY"):
        logger.warning("OPENAI_API_KEY is not set; OpenAI-backed routes will return 500.")
    if not (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")):
        logger.warning("GEMINI_API_KEY is not set; Gemini routes need a caller-supplied key.")

    uvicorn.run(
        "main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=level.lower(),
        app_dir=str(ROOT_DIR),
    )


if __name__ == "__main__":
    main()
