"""
Shock Severity Analysis Script.

Runs the SRS / SSI pipeline on a synthetic half-sine shock pulse and, optionally,
estimates the response of a structure described by a modal table.

Usage:
    python scripts/run_severity_analysis.py --amplitude 100 --width-ms 11
    python scripts/run_severity_analysis.py --modes modes.csv --sweep 10 --summary srs.csv
"""

import argparse
import os

import numpy as np
import pandas as pd
from loguru import logger
from tqdm import tqdm

from config import settings
from src.severity.decomposition import decompose, singular_value_decomposition
from src.severity.mdof import ModalInfo
from src.severity.metrics.severity import SSIMargin, StructuralResponseBound
from src.severity.metrics.spectrum import PeakSRS
from src.severity.pipeline import SeverityAnalysisPipeline


def half_sine_pulse(amplitude, width_s, sample_rate, duration_s):
    """Half-sine pulse followed by zeros (quiet time for the oscillators to ring)."""
    time_s = np.arange(int(round(duration_s * sample_rate)) + 1) / sample_rate
    accel = np.where(
        time_s <= width_s, amplitude * np.sin(np.pi * time_s / width_s), 0.0
    )
    return time_s, accel


def main():
    parser = argparse.ArgumentParser(description="SRS / SSI analysis of a half-sine pulse.")
    parser.add_argument("--amplitude", type=float, default=100.0, help="Pulse peak")
    parser.add_argument("--width-ms", type=float, default=11.0, help="Pulse width (ms)")
    parser.add_argument("--sample-rate", type=float, default=20000.0, help="Hz")
    parser.add_argument("--duration", type=float, default=0.2, help="Record length (s)")
    parser.add_argument("--starting-frequency", type=float, default=None, help="Hz")
    parser.add_argument("--q", type=float, default=None, help="Quality factor")
    parser.add_argument("--order", type=int, default=settings.SSI_ORDER, help="SSI order")
    parser.add_argument("--modes", type=str, default=None, help="CSV: frequency, participation, shape")
    parser.add_argument("--sweep", type=int, default=0, help="Margin sweep up to this order")
    parser.add_argument("--summary", type=str, default=None, help="Write per-frequency SRS to CSV")
    args = parser.parse_args()

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    logger.add(os.path.join(settings.LOG_DIR, "severity_{time}.log"), level=settings.LOG_LEVEL)

    # 1. Input pulse
    time_s, accel = half_sine_pulse(
        args.amplitude, args.width_ms / 1000.0, args.sample_rate, args.duration
    )
    print(f"[*] Half-sine {args.amplitude} x {args.width_ms} ms, {len(time_s)} samples")

    # 2. Pipeline
    pipeline = SeverityAnalysisPipeline(
        starting_frequency=args.starting_frequency, quality_factor=args.q
    )
    pipeline.add_metric(PeakSRS())
    pipeline.add_metric(SSIMargin(order=args.order))
    if args.modes:
        modal_info = ModalInfo.from_table(pd.read_csv(args.modes))
        pipeline.add_metric(
            StructuralResponseBound(
                modal_info=modal_info,
                out_of_range=settings.OUT_OF_RANGE_POLICY,
                ssi_order=args.order,
            )
        )

    results = pipeline.run(time_s, accel)

    print("\n=== Severity Results ===")
    for k, v in results.items():
        if k != "srs_obj":
            print(f"  - {k}: {v}")

    srs = results["srs_obj"]

    # 3. Margin vs. order (optional)
    if args.sweep > 0:
        factors = singular_value_decomposition(srs)
        max_order = min(args.sweep, factors.rank)
        print(f"\n=== Mean margin for orders 1..k (k <= {max_order}) ===")
        for k in tqdm(range(1, max_order + 1)):
            ssi = decompose(srs, order=range(1, k + 1), factors=factors)
            tqdm.write(f"  k={k:3d}: {ssi.mean_margin_db:8.3f} dB")

    # 4. Per-frequency table (optional)
    if args.summary:
        srs.summary().to_csv(args.summary, index=False)
        print(f"[*] Saved SRS summary to {args.summary}")


if __name__ == "__main__":
    main()
