#!/usr/bin/env python3

"""
Load the yearly emission snapshot files into the store.
"""

from dotenv import load_dotenv

load_dotenv()

from emissions_pipeline.ingestion.worker import main

if __name__ == "__main__":
    main()
