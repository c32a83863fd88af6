from __future__ import annotations

from toursearch.ui.cli import run

if __name__ == "__main__":
    run()
