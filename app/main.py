import argparse
import asyncio
import sys
from pathlib import Path

from app.config.settings import Settings
from app.dom.page import Page
from app.logging.logger import Log
from app.redactor.redactor import Redactor, build_redactor


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Anonymize customer-identifying content of an HTML page for demos."
    )
    parser.add_argument("input", type=Path, help="HTML file to redact")
    parser.add_argument("--url", required=True, help="URL the page was loaded from")
    parser.add_argument("--config", default=None, help="Config path or URL (default: CONFIG_PATH)")
    parser.add_argument(
        "--output", type=Path, default=None, help="Write result here (default: INPUT.redacted.html)"
    )
    parser.add_argument(
        "--watch",
        type=float,
        default=0.0,
        metavar="SECONDS",
        help="Run the reconciliation loop for this long instead of a single pass",
    )
    return parser.parse_args(argv)


async def _watch(redactor: Redactor, seconds: float) -> None:
    redactor.start()
    try:
        await asyncio.sleep(seconds)
    finally:
        redactor.set_enabled(False)


def main(argv: list[str] | None = None) -> int:
    """Entry point: settings -> config -> page -> redact -> write."""
    args = parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    page = Page(args.input.read_text(encoding="utf-8"), url=args.url)
    redactor = build_redactor(settings, page, args.config)

    if args.watch > 0:
        asyncio.run(_watch(redactor, args.watch))
    else:
        stats = redactor.redact_once()
        Log.info(
            f"Redacted {args.input}: {stats.processed} processed, {stats.failed} failed"
        )

    output = args.output or args.input.with_suffix(".redacted.html")
    output.write_text(page.to_html(), encoding="utf-8")
    Log.info(f"Wrote {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
