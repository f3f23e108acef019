#!/usr/bin/env python3
"""
UsageHQ - Launcher
Runs the full pipeline: extract bills -> enrich with weather -> build dashboard.
"""

import sys
from pathlib import Path


def get_app_dir():
    """Get the application directory."""
    return Path(__file__).resolve().parent


def main():
    # Set up paths
    app_dir = get_app_dir()
    src_dir = app_dir / "src"

    # Add src to path
    sys.path.insert(0, str(src_dir))

    import bill_extractor
    import weather_enricher
    import dashboard
    from config import DATA_DIR, BILLS_DIR

    # Ensure data directory exists
    DATA_DIR.mkdir(exist_ok=True)

    stages = [
        ("Extract bills", lambda: bill_extractor.main(BILLS_DIR, DATA_DIR)),
        ("Enrich with weather", weather_enricher.main),
        ("Build dashboard", dashboard.main),
    ]

    for name, stage in stages:
        print("=" * 60)
        print(name.upper())
        print("=" * 60)
        code = stage()
        if code != 0:
            print(f"\n❌ Stopped: '{name}' failed")
            return code
        print()

    print("✅ Dashboard ready")
    return 0


if __name__ == '__main__':
    sys.exit(main())
