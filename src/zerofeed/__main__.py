"""Run the zerofeed CLI with `python -m zerofeed`."""

from __future__ import annotations

from zerofeed.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
