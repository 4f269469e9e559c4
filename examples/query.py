"""Query a ddpack-clean report - list packs by status and what was removed."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python query.py <report.parquet> [status]")
        print("Example: python query.py report.parquet SKIPPED")
        sys.exit(1)

    report = Path(sys.argv[1])
    status = sys.argv[2].upper() if len(sys.argv) > 2 else None

    con = duckdb.connect(":memory:")
    con.execute(f"CREATE VIEW packs AS SELECT * FROM '{report}'")

    sql = """
    SELECT
        source,
        status,
        coalesce(pack_name, '?') AS pack,
        removed_tags,
        removed_groups,
        reason
    FROM packs
    """
    params: list = []
    if status:
        sql += " WHERE status = ?"
        params.append(status)
    sql += " ORDER BY removed_tags DESC, source"

    print(f"--- ddpack-clean report: {report} ---")
    totals = con.execute(
        "SELECT status, count(*) AS n, sum(removed_tags) AS tags, sum(removed_groups) AS groups "
        "FROM packs GROUP BY status ORDER BY status"
    ).fetchdf()
    for _, row in totals.iterrows():
        print(f"{row['status']}: {row['n']} packs, {row['tags']} tags, {row['groups']} groups removed")
    print()

    df = con.execute(sql, params).fetchdf()
    if df.empty:
        print("No packs match.")
    else:
        for _, row in df.iterrows():
            print(f"{row['status']:<8} {row['pack']:<24} {row['source']}")
            if row["reason"]:
                print(f"  Reason: {row['reason'][:100]}")
            else:
                print(f"  Removed: {row['removed_tags']} tags, {row['removed_groups']} groups")


if __name__ == "__main__":
    main()
