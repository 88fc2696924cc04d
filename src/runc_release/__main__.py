"""Module entrypoint for `python -m runc_release`."""

from __future__ import annotations

from runc_release.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
