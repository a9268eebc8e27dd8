#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd


def plot_classified(df: pd.DataFrame, title: str, output: Path) -> None:
    fig, ax = plt.subplots(1, 1, figsize=(10, 4.5))

    ax.plot(df["line_no"], (df["kind"] == "ERROR").cumsum(), label="errors", color="#e63946")
    ax.plot(df["line_no"], (df["kind"] == "WARNING").cumsum(), label="warnings", color="#f4a261")
    ax.set_xlabel("Line")
    ax.set_ylabel("Cumulative count")
    ax.legend()
    ax.grid(True, alpha=0.3)

    fig.suptitle(title)
    fig.tight_layout()
    fig.savefig(output, dpi=160)
    plt.close(fig)


def main() -> None:
    parser = argparse.ArgumentParser(description="Plot cumulative warnings/errors of a classified log")
    parser.add_argument("--input", type=Path, required=True, help="Path to *_classified.csv")
    parser.add_argument("--output", type=Path, default=None, help="Output image path")
    args = parser.parse_args()

    if args.output is None:
        args.output = args.input.with_suffix(".png")

    df = pd.read_csv(args.input)
    plot_classified(df, f"Warnings/Errors: {args.input.name}", args.output)

    print("Saved:", args.output)


if __name__ == "__main__":
    main()
