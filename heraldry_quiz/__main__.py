from __future__ import annotations

import argparse
from pathlib import Path

from .app import run


def main(argv: list[str] | None = None) -> int:
    """Entry point for running the quiz from the command line."""

    parser = argparse.ArgumentParser(prog="heraldry-quiz", description="Multiple-choice quiz on heraldic emblems.")
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Path to a sigils_db.json catalog (defaults to $HERALDRY_CATALOG_PATH or the bundled one).",
    )
    args = parser.parse_args(argv)
    return run(catalog_path=args.catalog)


if __name__ == "__main__":
    raise SystemExit(main())
