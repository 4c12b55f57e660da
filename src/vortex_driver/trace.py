from __future__ import annotations

from pathlib import Path
from warnings import warn

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

TRACE_SCHEMA = pa.schema(
    [
        ("seq", pa.int64()),
        ("operation", pa.string()),
        ("request_count", pa.int64()),
        ("response_count", pa.int64()),
        ("elapsed_ms", pa.float64()),
    ]
)


class SessionTrace:
    """Per-request summary rows, written once as Parquet when the session ends. No path, no rows."""

    def __init__(self, out_path: Path | None = None):
        self.out_path = Path(out_path) if out_path is not None else None
        self.rows: list[dict] = []

    def record(self, operation: str, request_count: int, response_count: int, elapsed_ms: float) -> None:
        if self.out_path is None:
            return
        self.rows.append(
            {
                "seq": len(self.rows),
                "operation": operation,
                "request_count": int(request_count),
                "response_count": int(response_count),
                "elapsed_ms": float(elapsed_ms),
            }
        )

    def write(self) -> Path | None:
        if self.out_path is None:
            return None
        if not self.rows:
            warn(f"No completed requests, trace not written to {self.out_path}")
            return None

        self.out_path.parent.mkdir(parents=True, exist_ok=True)
        df = pd.DataFrame(self.rows)
        table = pa.Table.from_pandas(df, schema=TRACE_SCHEMA, preserve_index=False)
        pq.write_table(table, self.out_path)
        return self.out_path
