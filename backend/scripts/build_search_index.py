#!/usr/bin/env python3
"""
================================================================================
          SEARCH INDEX BUILD SCRIPT (FROM CSV)

  Purpose : Builds the search index artifact from the catalog CSV at
            build time, so read-only deployments ship a ready index.

  Runtime : Python 3.10+
================================================================================

USAGE
-----
    # Rebuild only when the index is stale:
    python scripts/build_search_index.py

    # Always rebuild:
    python scripts/build_search_index.py --force

    # Custom paths and processing profile:
    python scripts/build_search_index.py --csv public/products.csv \\
        --output data/search-index.json --profile development --workers 4
"""

import argparse
import logging
import sys

from catalog_search.container import create_container
from catalog_search.core.config import get_settings
from catalog_search.core.constants.ingestion import INGEST_PROFILES
from catalog_search.core.exceptions import CatalogSearchException

logger = logging.getLogger("build_search_index")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the catalog search index from CSV")
    parser.add_argument("--csv", help="Source catalog CSV (default: CATALOG_CSV_PATH)")
    parser.add_argument("--output", help="Index artifact path (default: SEARCH_INDEX_PATH)")
    parser.add_argument("--profile", choices=sorted(INGEST_PROFILES), help="Ingestion profile")
    parser.add_argument("--workers", type=int, help="Transform worker processes")
    parser.add_argument("--force", action="store_true", help="Rebuild even if the index is fresh")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    overrides = {"read_only_mode": False}
    if args.csv:
        overrides["catalog_csv_path"] = args.csv
    if args.output:
        overrides["index_path"] = args.output
    if args.profile:
        overrides["ingest_profile"] = args.profile
    if args.workers:
        overrides["ingest_workers"] = args.workers
    settings = get_settings().model_copy(update=overrides)

    container = create_container(settings)
    resolver = container.index_resolver
    try:
        products = resolver.resolve(force=args.force)
    except CatalogSearchException as e:
        logger.error(f"Search index build failed: {e}")
        return 1

    build = resolver.last_build
    if build is None:
        logger.info(f"Search index is up to date ({len(products):,} products), nothing to do")
        return 0

    metrics = build.metrics
    print("=" * 60)
    print("Search index built")
    print(f"  Products:     {metrics.accepted_count:,}")
    print(f"  Rejected:     {metrics.rejected_count:,}")
    print(f"  Vendors:      {len(build.artifact.metadata.vendors):,}")
    print(f"  Types:        {len(build.artifact.metadata.product_types):,}")
    print(f"  Duration:     {metrics.duration_ms / 1000:.2f} s")
    print(f"  Throughput:   {metrics.throughput_per_sec:,.0f} products/s")
    print(f"  Peak memory:  {metrics.peak_memory_mb:.1f} MB")
    print(f"  Index size:   {metrics.artifact_size_bytes / 1024 / 1024:.2f} MB")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
