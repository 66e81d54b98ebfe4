"""
Bulk-ingest a website export into the pipeline.

Usage:
    python scripts/index_site.py <tenant_id> documents.json
    python scripts/index_site.py <tenant_id> catalog.json --catalog

The JSON file holds a list of documents ({id, title, url, content}) or, with
--catalog, a list of catalog items ({id, title, url, description,
attributes, ...}).
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from semsearch.config import Settings
from semsearch.db import init_schema
from semsearch.embeddings.models import CatalogItem
from semsearch.ingestion.service import SourceDocument
from semsearch.pipeline import build_pipeline


async def main(tenant_id: str, path: str, catalog: bool) -> int:
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)

    print("Initializing pipeline...")
    pipeline = build_pipeline(Settings())
    if pipeline.engine is not None:
        await init_schema(pipeline.engine)

    try:
        if catalog:
            items = [CatalogItem.model_validate(entry) for entry in raw]
            print(f"Ingesting {len(items)} catalog items for {tenant_id}...")
            report = await pipeline.ingestion.ingest_catalog(tenant_id, items)
        else:
            documents = [SourceDocument.model_validate(entry) for entry in raw]
            print(f"Ingesting {len(documents)} documents for {tenant_id}...")
            report = await pipeline.ingestion.ingest_documents(tenant_id, documents)
    finally:
        await pipeline.close()

    print(f"Processed: {report.processed_count}, skipped: {report.skipped_count}")
    for skipped in report.skipped:
        print(f"  skipped {skipped.unit_id}: {skipped.reason}")

    return 1 if report.processed_count == 0 and report.skipped_count > 0 else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("tenant_id")
    parser.add_argument("path", help="JSON file with documents or catalog items")
    parser.add_argument("--catalog", action="store_true", help="ingest catalog items")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main(args.tenant_id, args.path, args.catalog)))
