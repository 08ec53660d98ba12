#!/usr/bin/env python3
"""
Run the slot generator outside HTTP. Input is the same JSON body /admin/generator/apply takes.
Dry run unless --apply is passed.
Run: cd backend && python scripts/generate_slots.py input.json [--apply]
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bundlegen.config import settings
from bundlegen.core.errors import GeneratorError
from bundlegen.services.generator.orchestrator import apply
from bundlegen.services.generator.types import GenerateInput
from bundlegen.services.shopify.catalog import ShopifyCatalog
from bundlegen.services.shopify.client import ShopifyClient


async def run(body: dict, write: bool) -> dict:
    data = TypeAdapter(GenerateInput).validate_python({"source": "manual", **body})
    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http:
        catalog = ShopifyCatalog(ShopifyClient(http=http))
        result = await apply(data, catalog=catalog, dry_run=not write, http=http)
    return result.model_dump(by_alias=True, exclude_none=True, mode="json")


def main():
    parser = argparse.ArgumentParser(description="Create or check Seat Units and Bundles for a slot range.")
    parser.add_argument("input", type=Path, help="JSON file with the generator input")
    parser.add_argument("--apply", action="store_true", help="write to the shop (default: dry run)")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    body = json.loads(args.input.read_text(encoding="utf-8"))
    try:
        result = asyncio.run(run(body, args.apply))
    except PydanticValidationError as e:
        print(f"Invalid input:\n{e}", file=sys.stderr)
        sys.exit(2)
    except GeneratorError as e:
        print(f"Failed: {e}", file=sys.stderr)
        if e.ctx:
            print(json.dumps(e.ctx, indent=2), file=sys.stderr)
        sys.exit(1)
    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
