from __future__ import annotations

import sys

from todoapi.cli import main

if __name__ == "__main__":
    raise SystemExit(main(["serve", *sys.argv[1:]]))
