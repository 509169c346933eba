#!/usr/bin/env python3
"""
Command-line script to fetch web pages and extract their metadata.

Options not given on the command line come from WEBPAGE_INFO_* environment
variables (a .env file in the working directory is loaded automatically),
then from the library defaults.

Usage:
    python run_fetch.py https://example.com
    python run_fetch.py https://example.com https://example.org -o out.json
    python run_fetch.py https://example.com --timeout 10 --max-body-size 2000000
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from webpage_info.main import WebpageParser
from webpage_info.config import FetchOptions
from webpage_info.exceptions import WebpageInfoError
from webpage_info.logger import setup_logger


def build_options(args: argparse.Namespace) -> FetchOptions:
    """Environment first, then command-line overrides."""
    overrides = {}
    if args.timeout is not None:
        overrides["timeout"] = args.timeout
    if args.max_body_size is not None:
        overrides["max_body_size"] = args.max_body_size
    if args.user_agent:
        overrides["user_agent"] = args.user_agent
    if args.max_redirects is not None:
        overrides["max_redirects"] = args.max_redirects
    if args.allow_private:
        overrides["block_private_ips"] = False

    # Rebuild rather than model_copy() so overrides are validated too
    return FetchOptions(**{**FetchOptions.from_env().model_dump(), **overrides})


async def run(urls: list[str], options: FetchOptions) -> list[dict]:
    webpage_parser = WebpageParser()
    results = []

    # One at a time: this is a lookup tool, not a crawler
    for url in urls:
        try:
            info = await webpage_parser.fetch(url, options)
            results.append({
                "url": url,
                "status": "success",
                "http": info.http.model_dump(exclude={"body"}),
                "metadata": info.html.model_dump()
            })
        except WebpageInfoError as e:
            results.append({
                "url": url,
                "status": "error",
                **e.to_response()
            })

    return results


def main():
    parser = argparse.ArgumentParser(description="Fetch web pages and extract metadata")
    parser.add_argument("urls", nargs="+", help="URLs to fetch")
    parser.add_argument("--timeout", "-t", type=float, help="Overall timeout in seconds")
    parser.add_argument("--max-body-size", type=int, help="Maximum decoded body size in bytes")
    parser.add_argument("--user-agent", help="User-Agent header")
    parser.add_argument("--max-redirects", type=int, help="Maximum redirects to follow (0 disables)")
    parser.add_argument(
        "--allow-private",
        action="store_true",
        help="Allow private/internal addresses (disables SSRF protection)"
    )
    parser.add_argument("--output", "-o", help="Output JSON file (default: print to stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        options = build_options(args)
    except ValueError as e:
        # pydantic ValidationError is a ValueError
        print(f"Invalid options: {e}", file=sys.stderr)
        sys.exit(2)

    results = asyncio.run(run(args.urls, options))
    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Saved to: {args.output}")
    else:
        print(output)

    if any(r["status"] == "error" for r in results):
        sys.exit(1)


if __name__ == "__main__":
    main()
