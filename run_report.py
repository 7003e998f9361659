#!/usr/bin/env python3

"""
Run an analytical report (trend, distance, top, scan, status) against the store.
"""

from dotenv import load_dotenv

load_dotenv()

from emissions_pipeline.analytics.report import main

if __name__ == "__main__":
    main()
