#!/usr/bin/env python3
"""
Command-line script to extract metadata from local HTML files.

No network access: each file is decoded (charset detected from its bytes),
parsed and run through the extractor. Use --base-url to resolve relative
links as if the files had been served from that URL.

Usage:
    python run_parse.py page.html
    python run_parse.py saved/*.html --base-url https://example.com/
    python run_parse.py page.html -o metadata.json
"""

import argparse
import json
import logging
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from webpage_info.main import WebpageParser
from webpage_info.exceptions import WebpageInfoError
from webpage_info.logger import setup_logger


def main():
    parser = argparse.ArgumentParser(description="Extract metadata from local HTML files")
    parser.add_argument("files", nargs="+", help="HTML files to process")
    parser.add_argument("--base-url", "-b", help="Base URL for resolving relative links")
    parser.add_argument("--output", "-o", help="Output JSON file (default: print to stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)
    webpage_parser = WebpageParser()

    results = []
    for filepath in args.files:
        path = Path(filepath)
        try:
            info = webpage_parser.parse_file(path, base_url=args.base_url)
            results.append({
                "file": path.name,
                "status": "success",
                "metadata": info.model_dump()
            })
        except (OSError, WebpageInfoError) as e:
            results.append({
                "file": path.name,
                "status": "error",
                "error": str(e)
            })

    # ensure_ascii=False keeps non-ASCII titles readable
    output = json.dumps(results, indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Saved to: {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
