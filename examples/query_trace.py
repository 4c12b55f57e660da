"""Summarize a driver trace - request counts and latency per operation."""
from __future__ import annotations

import sys
from pathlib import Path

import duckdb


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python query_trace.py <trace.parquet>")
        print("Example: python query_trace.py run/trace.parquet")
        sys.exit(1)

    trace = Path(sys.argv[1])

    con = duckdb.connect(":memory:")
    con.execute(f"CREATE VIEW trace AS SELECT * FROM '{trace}'")

    sql = """
    SELECT
        operation,
        COUNT(*) AS requests,
        SUM(request_count) AS events,
        SUM(response_count) AS results,
        ROUND(AVG(elapsed_ms), 3) AS avg_ms,
        ROUND(MAX(elapsed_ms), 3) AS max_ms
    FROM trace
    GROUP BY operation
    ORDER BY operation
    """

    print(f"--- Driver trace: {trace} ---\n")

    df = con.execute(sql).fetchdf()
    if df.empty:
        print("No requests recorded.")
    else:
        for _, row in df.iterrows():
            print(f"OPERATION: {row['operation']}")
            print(f"  Requests: {row['requests']}  Events: {row['events']}  Results: {row['results']}")
            print(f"  Latency: avg {row['avg_ms']} ms, max {row['max_ms']} ms")
            print()


if __name__ == "__main__":
    main()
