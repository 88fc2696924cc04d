"""Build, archive, checksum and sign a runc release from a source checkout."""

from __future__ import annotations

from runc_release.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
