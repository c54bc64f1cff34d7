"""CLI entrypoint for the daily idea job and its HTTP trigger."""

from __future__ import annotations

import argparse
import asyncio
from datetime import date
import json

from utils.exceptions import PipelineAbortedError
from utils.logger import configure_from_settings


async def _run_once(target_date: date | None) -> dict:
    from webapp.runtime import close_pipeline, get_pipeline

    pipeline = get_pipeline()
    try:
        result = await pipeline.run(target_date)
    except PipelineAbortedError as exc:
        return {"success": False, "error": exc.reason, "stage": exc.stage, "message": exc.message}
    finally:
        await close_pipeline()
    return {"success": True, **result.model_dump(mode="json")}


def main() -> None:
    parser = argparse.ArgumentParser(description="Niche Radar daily idea CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="generate the daily idea once")
    run.add_argument("--date", default="", help="featured date (YYYY-MM-DD), defaults to today UTC")

    serve = sub.add_parser("serve", help="serve the HTTP trigger")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args()
    configure_from_settings()

    if args.command == "run":
        text = str(args.date or "").strip()
        target_date = date.fromisoformat(text) if text else None
        payload = asyncio.run(_run_once(target_date))
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        raise SystemExit(0 if payload["success"] else 1)

    if args.command == "serve":
        import uvicorn

        uvicorn.run("webapp.app:app", host=args.host, port=args.port)
        return


if __name__ == "__main__":
    main()
