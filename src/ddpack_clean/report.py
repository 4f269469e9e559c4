from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from .pipeline import PackResult

REPORT_SCHEMA = pa.schema(
    [
        ("source", pa.string()),
        ("output", pa.string()),
        ("status", pa.string()),
        ("code", pa.string()),
        ("reason", pa.string()),
        ("pack_id", pa.string()),
        ("pack_name", pa.string()),
        ("version", pa.string()),
        ("entries", pa.int32()),
        ("removed_tags", pa.int32()),
        ("removed_groups", pa.int32()),
        ("pruned_refs", pa.int32()),
        ("checksum_mismatches", pa.int32()),
    ]
)


def results_frame(results: Iterable[PackResult]) -> pd.DataFrame:
    """One row per pack, columns in REPORT_SCHEMA order."""
    rows = [r.to_dict() for r in results]
    return pd.DataFrame(rows, columns=REPORT_SCHEMA.names)


def write_report(results: Iterable[PackResult], path: Path) -> None:
    """Write the batch report as a Parquet table."""
    df = results_frame(results).sort_values("source", kind="stable")
    table = pa.Table.from_pandas(df, schema=REPORT_SCHEMA, preserve_index=False)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, path)
