from __future__ import annotations

import argparse
import os


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the smoke runner."""
    parser = argparse.ArgumentParser(description="Uptime checks API smoke runner")
    parser.add_argument("--base-url", default=os.getenv("BASE_URL", "http://127.0.0.1:3000"))
    parser.add_argument(
        "--max-checks",
        type=int,
        default=int(os.getenv("MAX_CHECKS", "5")),
        help="Per-user check quota configured on the server",
    )
    parser.add_argument("--timeout", type=float, default=20.0, help="Seconds to wait for /ping")
    parser.add_argument("--phone", default=None, help="Use this phone instead of a random one")
    parser.add_argument(
        "--keep",
        action="store_true",
        help="Leave the user and token in place after the run",
    )
    return parser.parse_args(argv)
