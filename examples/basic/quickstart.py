# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Datasync Client - Quickstart

Runs a handful of typed queries against the ``movies`` table of a Datasync
service (the sample table used by the Azure Mobile Apps templates).

Prerequisites:
    pip install datasync-client
    pip install azure-identity   # only for services that require sign-in
"""

import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Add src to PYTHONPATH for local runs
sys.path.append(str(Path(__file__).resolve().parents[2] / "src"))

from Datasync.Client.client import DatasyncClient
from Datasync.Client.core.errors import DatasyncError, HttpError, QueryTranslationError
from Datasync.Client.models import functions as fn
from Datasync.Client.models.nodes import F
from Datasync.Client.models.schema import JSON_NAME


@dataclass
class Movie:
    id: str
    title: str
    year: int = 0
    duration: int = 0
    rating: Optional[str] = None
    best_picture_winner: bool = False
    release_date: Optional[str] = field(default=None, metadata={JSON_NAME: "releaseDate"})


@dataclass
class TitleAndYear:
    title: str
    year: int


def section(title: str) -> None:
    print("\n" + "-" * 60)
    print(title)
    print("-" * 60)


def main():
    endpoint = input("Enter Datasync endpoint (e.g. https://myapp.azurewebsites.net): ").strip()
    if not endpoint:
        print("[ERR] No endpoint entered; exiting.")
        sys.exit(1)

    credential = None
    if (input("Sign in before querying? (y/N): ").strip() or "n").lower() in ("y", "yes"):
        from azure.identity import InteractiveBrowserCredential

        print("[INFO] Authenticating via browser...")
        credential = InteractiveBrowserCredential()

    with DatasyncClient(endpoint, credential) as client:
        movies = client.query.builder("movies", Movie)

        section("1. Count every movie")
        print(f"[OK] {client.query.count('movies')} movies")

        section("2. 1990s movies rated R, newest first")
        nineties = (
            movies.where((F.year >= 1990) & (F.year <= 1999))
            .where(F.rating == "R")
            .order_by_descending(F.year)
            .then_by(F.title)
            .include_total_count()
        )
        print(f"  Query string: {nineties.to_query_string()}")
        result = nineties.execute()
        for movie in result:
            print(f"  {movie.year} {movie.title}")
        print(f"[OK] {result.count} matching movies")

        section("3. Page through titles three at a time")
        for number, page in enumerate(movies.order_by(F.title).take(9).execute().iter_pages(), start=1):
            print(f"  Page {number}: {[m.title for m in page]} (more: {page.has_more})")

        section("4. Project into a smaller type")
        for row in movies.where(fn.startswith(F.title, "The")).select(F.title, F.year, into=TitleAndYear).execute():
            print(f"  {row.title} ({row.year})")

        section("5. Index by id")
        winners = movies.where(F.best_picture_winner).execute().to_dict("id")
        print(f"[OK] {len(winners)} best picture winners")

        section("6. Unsupported expressions fail before anything is sent")
        try:
            movies.where(F.year // 10 == 199).execute()
        except QueryTranslationError as ex:
            print(f"[OK] {ex.code}/{ex.subcode}: {ex}")

        section("7. Cancel a long traversal")
        cancel = threading.Event()
        seen = 0
        try:
            for _ in movies.execute(cancel_event=cancel):
                seen += 1
                if seen == 5:
                    cancel.set()
        except DatasyncError as ex:
            print(f"[OK] Stopped after {seen} items: {ex.code}")

        section("8. Service errors")
        try:
            client.query.get("no_such_table").to_list()
        except HttpError as ex:
            print(f"[OK] HTTP {ex.status_code} ({ex.subcode}), transient={ex.is_transient}")

    print("\n" + "=" * 60)
    print("[OK] Quickstart complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
