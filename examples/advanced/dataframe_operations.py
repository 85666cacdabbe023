# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Datasync Client - DataFrame Walkthrough

This example reads Datasync query results into pandas DataFrames.

Prerequisites:
    pip install datasync-client
"""

import sys
from dataclasses import dataclass
from typing import Optional

import pandas as pd
from Datasync.Client.client import DatasyncClient
from Datasync.Client.models.nodes import F


@dataclass
class Movie:
    id: str
    title: str
    year: int = 0
    duration: int = 0
    rating: Optional[str] = None


def main():
    # ── Setup ─────────────────────────────────────────────────────
    endpoint = input("Enter Datasync endpoint (e.g. https://myapp.azurewebsites.net): ").strip()
    if not endpoint:
        print("[ERR] No endpoint entered; exiting.")
        sys.exit(1)

    with DatasyncClient(endpoint) as client:
        movies = client.query.builder("movies", Movie)

        # ── 1. Typed query into a DataFrame ───────────────────────
        print("\n" + "-" * 60)
        print("1. Typed query into a DataFrame")
        print("-" * 60)

        df = movies.where(F.year >= 2000).order_by(F.year).execute().to_dataframe()
        print(f"[OK] {len(df)} rows, columns {list(df.columns)}")
        print(df.head().to_string(index=False))

        # ── 2. Aggregate locally ──────────────────────────────────
        print("\n" + "-" * 60)
        print("2. Average duration per rating")
        print("-" * 60)

        print(df.groupby("rating")["duration"].mean().round(1).to_string())

        # ── 3. Projection with renamed columns ────────────────────
        print("\n" + "-" * 60)
        print("3. Projection with renamed columns")
        print("-" * 60)

        projected = movies.select(name=F.title, released=F.year).execute().to_dataframe()
        print(projected.head().to_string(index=False))

        # ── 4. One DataFrame per page ─────────────────────────────
        print("\n" + "-" * 60)
        print("4. One DataFrame per page, concatenated")
        print("-" * 60)

        frames = [pd.DataFrame([vars(m) for m in page]) for page in movies.take(20).execute().iter_pages()]
        combined = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame()
        print(f"[OK] {len(frames)} page(s), {len(combined)} rows")

    print("\n" + "=" * 60)
    print("[OK] DataFrame walkthrough complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
