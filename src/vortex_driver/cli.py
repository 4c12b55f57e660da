"""Vortex driver - ledger client conformance driver over stdin/stdout."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO, Sequence

import click

from vortex_core import u128
from vortex_core.errors import DriverError, StartupError

from .client import TigerBeetleClient
from .driver import Driver
from .framing import FramedReader, FramedWriter
from .trace import SessionTrace


def check_byte_order(byteorder: str = sys.byteorder) -> None:
    # Little-endian hosts only, so wire scalars match native layout everywhere.
    if byteorder != "little":
        raise StartupError(f"native byte order little expected, host is {byteorder}")


def parse_cluster_id(text: str) -> int:
    try:
        return u128.parse_decimal(text)
    except ValueError as e:
        raise StartupError(f"CLUSTER_ID: {e}") from e


def parse_replicas(text: str) -> list[str]:
    addresses = [a.strip() for a in text.split(",") if a.strip()]
    if not addresses:
        raise StartupError("REPLICAS must list at least one address (comma-separated)")
    return addresses


def run_driver(
    cluster_id: int,
    replicas: Sequence[str],
    input_stream: BinaryIO,
    output_stream: BinaryIO,
    trace_path: Path | None = None,
    verbose: bool = False,
) -> int:
    """Serve requests from input_stream until it ends. Returns the number of requests served."""
    trace = SessionTrace(trace_path) if trace_path is not None else None
    try:
        with TigerBeetleClient(cluster_id, replicas) as client:
            driver = Driver(
                client,
                FramedReader(input_stream),
                FramedWriter(output_stream),
                trace=trace,
                verbose=verbose,
            )
            return driver.run()
    finally:
        if trace is not None:
            trace.write()


def _startup_param(parse):
    def callback(ctx: click.Context, param: click.Parameter, value: str):
        try:
            return parse(value)
        except StartupError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param) from e

    return callback


@click.command()
@click.argument("cluster_id", callback=_startup_param(parse_cluster_id))
@click.argument("replicas", callback=_startup_param(parse_replicas))
@click.option("--trace", "trace_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Write a per-request Parquet trace here on exit")
@click.option("--verbose", is_flag=True, help="Log one line per request to stderr")
def main(cluster_id: int, replicas: list[str], trace_path: Path | None, verbose: bool) -> None:
    """Run ledger operations read from stdin, write results to stdout."""
    try:
        check_byte_order()
    except StartupError as e:
        raise click.UsageError(str(e)) from e

    try:
        served = run_driver(
            cluster_id,
            replicas,
            sys.stdin.buffer,
            sys.stdout.buffer,
            trace_path=trace_path,
            verbose=verbose,
        )
    except DriverError as e:
        # Fail closed with a single-line reason on stderr; stdout carries protocol bytes only.
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"FATAL: {type(e).__name__}: {e}", err=True)
        raise SystemExit(1)

    if verbose:
        click.echo(f"PASS: input closed after {served} requests", err=True)


if __name__ == "__main__":
    main()
