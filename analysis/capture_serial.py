#!/usr/bin/env python3
from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path

from serialpane.sources import DEFAULT_BAUD, detect_port, open_serial


def main() -> None:
    parser = argparse.ArgumentParser(description="Capture raw serial output to a log file")
    parser.add_argument("--port", default=None, help="Serial port (first detected port if omitted)")
    parser.add_argument("--baud", type=int, default=DEFAULT_BAUD, help="Baud rate")
    parser.add_argument("--seconds", type=float, default=30.0, help="Capture duration in seconds")
    parser.add_argument(
        "--outdir",
        type=Path,
        default=Path(__file__).resolve().parents[1] / "data" / "runs",
        help="Directory for raw logs",
    )
    args = parser.parse_args()

    port = args.port if args.port is not None else detect_port()

    args.outdir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = args.outdir / f"run_{stamp}_raw.log"

    print(f"Capturing {args.seconds:.1f}s from {port} @ {args.baud} ...")
    with open_serial(port, args.baud, timeout_s=0.2) as ser, out_file.open("wb") as f_out:
        end_time = datetime.now().timestamp() + args.seconds
        while datetime.now().timestamp() < end_time:
            chunk = ser.read(ser.in_waiting or 1)
            if not chunk:
                continue
            f_out.write(chunk)
            f_out.flush()

    print("Saved:", out_file)


if __name__ == "__main__":
    main()
