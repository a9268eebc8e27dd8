#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

import pandas as pd

from serialpane.classify import LineKind
from serialpane.ingest import LineAssembler

COLUMNS = ["line_no", "kind", "text"]


def classify_log_bytes(data: bytes) -> pd.DataFrame:
    # Same line splitting and classification as the live monitor.
    asm = LineAssembler()
    lines = asm.feed(data) + asm.flush()
    rows = [
        {"line_no": i, "kind": line.kind.value, "text": line.text}
        for i, line in enumerate(lines, start=1)
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def kind_counts(df: pd.DataFrame) -> dict[str, int]:
    counts = df["kind"].value_counts()
    return {k.value: int(counts.get(k.value, 0)) for k in LineKind}


def main() -> None:
    parser = argparse.ArgumentParser(description="Classify a raw serial log into CSV")
    parser.add_argument("--input", type=Path, required=True, help="Path to raw .log file")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output CSV path (default: sibling *_classified.csv)",
    )
    args = parser.parse_args()

    if args.output is None:
        args.output = args.input.with_name(args.input.stem.replace("_raw", "") + "_classified.csv")

    df = classify_log_bytes(args.input.read_bytes())

    if df.empty:
        raise SystemExit("No lines found in input.")

    df.to_csv(args.output, index=False)

    for kind, n in kind_counts(df).items():
        print(f"{kind:8s} {n}")
    print("Saved:", args.output)


if __name__ == "__main__":
    main()
