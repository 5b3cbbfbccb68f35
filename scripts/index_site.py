"""
Index one website from the command line.

Usage:
    python -m scripts.index_site example.com --depth 1
"""
import argparse
import asyncio
import json

from complyai.features.indexing.services.components import build_components
from complyai.platform.db.session import SessionLocal, engine, init_db
from complyai.platform.logger import get_logger

logger = get_logger("complyai")


async def index_site(domain: str, depth: int | None) -> dict:
    await init_db(engine)
    components = build_components(SessionLocal)
    try:
        return await components.pipeline.index_website(domain, max_depth=depth)
    finally:
        await components.close()
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Crawl, scan and index a website for accessibility violations.")
    parser.add_argument("domain", help="Domain or URL to index, e.g. example.com")
    parser.add_argument("--depth", type=int, default=None, help="Maximum crawl depth (default: CRAWL_MAX_DEPTH)")
    args = parser.parse_args()

    result = asyncio.run(index_site(args.domain, args.depth))
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
