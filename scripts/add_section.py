#!/usr/bin/env python3
"""
Create a section directly in the database.

Usage:
  python scripts/add_section.py --title "Fractions" [--description "Intro to fractions"]
"""
from __future__ import annotations

import argparse
import sys

from learnapi.core.logging import configure_logging
from learnapi.services.section_service import SectionService


def main() -> None:
    ap = argparse.ArgumentParser(description="Create a section")
    ap.add_argument("--title", required=True, help="Section title")
    ap.add_argument("--description", default="", help="Optional description")
    args = ap.parse_args()

    configure_logging()
    section = SectionService().create_section(args.title, args.description)
    print("OK: section created")
    print(f"  ID: {section.id}")
    print(f"  Title: {section.title}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
