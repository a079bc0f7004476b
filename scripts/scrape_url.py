#!/usr/bin/env python3
"""
Scrape URL for PropertyScrape

Runs the extraction pipeline on one or more listing URLs from the command line
and prints the resulting record (or the error body with its debug log) as JSON.
Useful for diagnosing a site without starting the API server.
"""

import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from controllers.extraction_orchestrator import ExtractionOrchestrator
from core.exceptions import AllExtractionMethodsFailed
from core.translation_service import MyMemoryTranslator
from utils.http_client import OptimizedHTTPClient
from utils.logging import get_logger

logger = get_logger("ScrapeURL")


async def scrape(urls, translate: bool = False) -> int:
    failures = 0
    async with OptimizedHTTPClient() as http_client:
        translator = MyMemoryTranslator(http_client=http_client) if translate else None
        orchestrator = ExtractionOrchestrator(http_client=http_client, translator=translator)
        for url in urls:
            try:
                record = await orchestrator.extract(url)
                print(record.to_json())
            except AllExtractionMethodsFailed as e:
                failures += 1
                print(json.dumps(e.to_dict(), indent=2, ensure_ascii=False))
    return failures


async def main():
    import argparse
    parser = argparse.ArgumentParser(description='Extract property listings from URLs')
    parser.add_argument('urls', nargs='+', help='Listing URLs to extract')
    parser.add_argument('--translate', action='store_true', help='Translate the record to English')
    args = parser.parse_args()

    failures = await scrape(args.urls, translate=args.translate)
    if failures:
        logger.warning("Some URLs failed", failed=failures, total=len(args.urls))
    return 1 if failures else 0


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
