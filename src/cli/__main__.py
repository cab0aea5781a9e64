"""Entrypoint for `python -m src.cli`, e.g. `python -m src.cli run`."""

from __future__ import annotations

from src.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
