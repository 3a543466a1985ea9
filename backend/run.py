"""
Start the Caseflow API server.

    python run.py                  # 127.0.0.1:8000
    python run.py --reload         # auto-reload while developing
    python run.py --host 0.0.0.0 --port 8080

Execution locks live in the server process, so there is no --workers
option: running several workers would let two processes advance the same
execution concurrently, leaving only the optimistic version check between
them.
"""
import argparse

import uvicorn

from caseflow.config.settings import settings


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Caseflow workflow engine API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    parser.add_argument(
        "--log-level",
        default=settings.log_level.lower(),
        choices=["critical", "error", "warning", "info", "debug"],
        help="uvicorn log level (default: LOG_LEVEL setting)"
    )
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()
    print(f"Caseflow API on http://{args.host}:{args.port} (env={settings.environment}, reload={args.reload})")
    uvicorn.run(
        "caseflow.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        workers=1
    )


if __name__ == "__main__":
    main()
