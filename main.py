from __future__ import annotations

from gh_notify_bridge.entrypoints.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
