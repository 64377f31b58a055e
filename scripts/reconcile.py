#!/usr/bin/env python3
"""
Repair drift between sections' component lists and exercise rows.

Usage:
  python scripts/reconcile.py
"""
from __future__ import annotations

import sys

from learnapi.core.logging import configure_logging
from learnapi.services.section_service import SectionService


def main() -> None:
    configure_logging()
    report = SectionService().reconcile()
    for key, value in report.to_dict().items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
