"""Generate the static applicant snapshot consumed by the dashboard front end.

Usage: ``python -m core.snapshot [--source PATH] [--out PATH]``
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from core.data import SNAPSHOT_PATH, SourceError, load_raw_rows, resolve_source
from core.models import ApplicantRecord
from core.reconcile import run_reconciliation


logger = logging.getLogger(__name__)


def write_snapshot(records: Iterable[ApplicantRecord], out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.to_dict() for r in records]
    out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return out_path


def build_snapshot(source: Optional[Path] = None, out_path: Path = SNAPSHOT_PATH) -> Path:
    rows = load_raw_rows(resolve_source(source))
    result = run_reconciliation(rows)
    path = write_snapshot(result.records, out_path)
    logger.info("Generated %s (%d applicants)", path, len(result.records))
    return path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile the applicant spreadsheet into a JSON snapshot.")
    parser.add_argument("--source", type=Path, default=None, help="Spreadsheet (.xlsx or .csv) to read.")
    parser.add_argument("--out", type=Path, default=SNAPSHOT_PATH, help="Where to write the JSON snapshot.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        build_snapshot(args.source, args.out)
    except SourceError as exc:
        logger.error("Snapshot not generated: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
