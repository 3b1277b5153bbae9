#!/usr/bin/env python3
"""Print the page metadata (and optionally JSON-LD) for one blog post."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import os
import sys
from typing import Iterable

from blogfront.client import ContentClient
from blogfront.config import SiteConfig
from blogfront.metadata import render_json_ld, resolve_post_metadata


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Show SEO metadata for a blog post")
    parser.add_argument("--slug", required=True, help="Post slug as used in /blog/<slug>")
    parser.add_argument(
        "--json-ld",
        action="store_true",
        help="Also print the BlogPosting JSON-LD payload",
    )
    parser.add_argument("--api-base", default=None, help="Override CONTENT_API_BASE")
    return parser


async def _run(slug: str, site: SiteConfig) -> tuple[dict, dict | None]:
    async with ContentClient(
        site.api_base, policy=site.retry_policy(), timeout=site.http_timeout
    ) as client:
        return await resolve_post_metadata(client, slug, site)


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    site = SiteConfig.from_env()
    if args.api_base:
        site = dataclasses.replace(site, api_base=args.api_base)

    metadata, json_ld = asyncio.run(_run(args.slug, site))
    print(json.dumps(metadata, ensure_ascii=False, indent=2))
    if args.json_ld:
        if json_ld is None:
            print("No JSON-LD: post not found", file=sys.stderr)
        else:
            print(render_json_ld(json_ld))
    return 0 if json_ld is not None else 1


if __name__ == "__main__":
    sys.exit(main())
