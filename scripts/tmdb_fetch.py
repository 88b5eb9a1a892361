#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys

from tmdb_provider.cache import CacheBridge
from tmdb_provider.errors import ConfigurationError, RequestPreparationError, TransportError
from tmdb_provider.factory import ClientProvider


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tmdb_fetch",
        description="Fetch TMDb movies through the shared client (token, JSON headers, cache).",
    )
    parser.add_argument("--movie-id", type=int, action="append", default=[], help="TMDb movie id. Repeatable.")
    parser.add_argument("--search", default=None, help="Search movies by title.")
    parser.add_argument("--language", default=None, help="Response language, e.g. en-US.")
    parser.add_argument("--flush-cache", action="store_true", help="Flush the tagged cache group before fetching.")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.movie_id and not args.search:
        print("ERROR: pass --movie-id and/or --search")
        return 2

    provider = ClientProvider()
    try:
        client = provider.get_client()
    except ConfigurationError as exc:
        print(f"ERROR: {exc}")
        return 2

    cache = client.get_cache_handler()
    if args.flush_cache:
        flushed = isinstance(cache, CacheBridge) and cache.flush()
        print(f"tmdb_fetch: cache flushed={flushed}")

    errors = 0
    try:
        for movie_id in args.movie_id:
            try:
                payload = client.get_movie(movie_id, language=args.language)
            except (TransportError, RequestPreparationError) as exc:
                errors += 1
                print(f"ERROR: movie_id={movie_id} error={exc}")
                continue
            print(json.dumps(payload, indent=2, sort_keys=True))

        if args.search:
            try:
                payload = client.search_movies(args.search, language=args.language)
            except (TransportError, RequestPreparationError) as exc:
                errors += 1
                print(f"ERROR: search={args.search!r} error={exc}")
            else:
                for item in payload.get("results") or []:
                    print(f"{item.get('id')}\t{item.get('release_date') or '----'}\t{item.get('title')}")
    finally:
        provider.close()

    return 1 if errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
