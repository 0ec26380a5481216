"""Command-line entrypoint: suggest outfits for a prompt from the local wardrobe."""

import argparse
import json
import random
import sys
from typing import List, Optional

from stylist_app.app import StylistApp


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Suggest outfits from your wardrobe for a short prompt.")
    parser.add_argument("prompt", help='e.g. "all black smart casual"')
    parser.add_argument("--user", default="local-user", help="wardrobe owner id")
    parser.add_argument("--count", type=int, default=None, help="number of cards to build")
    parser.add_argument("--seed", type=int, default=None, help="seed for reproducible picks")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    rng = random.Random(args.seed) if args.seed is not None else None
    app = StylistApp(rng=rng)
    response = app.suggestions.suggest_from_prompt(args.user, args.prompt, args.count)
    print(json.dumps(response, indent=2, default=str))
    return 0 if response.get("status") == "ok" else 1


if __name__ == "__main__":
    sys.exit(main())
