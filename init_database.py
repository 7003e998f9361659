#!/usr/bin/env python3

"""
Create every configured yearly partition without loading data.
"""

from dotenv import load_dotenv

# Load environment
load_dotenv()

from emissions_pipeline.config import get_settings
from emissions_pipeline.database import PartitionRegistry, get_store
from emissions_pipeline.ingestion.worker import IngestionPipeline

settings = get_settings()
registry = PartitionRegistry.from_settings(settings)

with get_store(settings) as store:
    created = IngestionPipeline(store, registry, settings).initialize()

print(f'Created {len(created)} of {len(registry)} partitions: {", ".join(created) or "none"}')
