"""Generate decomposition traces for eigen-lab benchmarks.

This script decomposes every matrix kind at several sizes under each
precision preset and records timing and accuracy as JSON trace files:
- One file per precision preset (trace_fp64.json, ...)
- A summary comparing presets for the symmetric and general paths
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from eigen_lab.algorithms.errors import ConvergenceError
from eigen_lab.algorithms.matrices import SPECTRUM_TYPES, create_experiment
from eigen_lab.algorithms.verification import run_decomposition
from eigen_lab.data.precision_types import PrecisionFormat, get_precision_hierarchy


def generate_precision_traces(
    matrix_sizes: tuple[int, ...] = (16, 64, 128),
    condition_number: float = 100.0,
    seed: int = 42,
    output_dir: Path | None = None,
) -> dict[str, list[dict]]:
    """Generate decomposition traces for each precision preset.

    Args:
        matrix_sizes: Matrix dimensions to benchmark.
        condition_number: Spectrum condition number.
        seed: Random seed for reproducibility.
        output_dir: Output directory (defaults to experiments/traces/).

    Returns:
        Trace records keyed by precision preset.
    """
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"

    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Generating decomposition traces (sizes={matrix_sizes}, κ={condition_number})...")

    results: dict[str, list[dict]] = {}
    for precision in get_precision_hierarchy():
        records: list[dict] = []
        print(f"  Running {precision.value}...", end=" ", flush=True)

        for n in matrix_sizes:
            for spectrum_type in SPECTRUM_TYPES:
                setup = create_experiment(
                    n, condition_number, seed=seed, spectrum_type=spectrum_type
                )
                try:
                    trace = run_decomposition(setup.matrix, precision)
                except ConvergenceError as exc:
                    records.append(
                        {
                            "matrix_size": n,
                            "spectrum_type": spectrum_type,
                            "converged": False,
                            "error": str(exc),
                        }
                    )
                    continue

                records.append(
                    {
                        "spectrum_type": spectrum_type,
                        "converged": True,
                        **trace.to_dict(),
                        "matrix_fingerprint": setup.fingerprint.to_dict(),
                    }
                )

        output = {
            "metadata": {
                "algorithm": "eigen_decomposition",
                "precision": precision.value,
                "condition_number": condition_number,
                "seed": seed,
                "timestamp": datetime.now(UTC).isoformat(),
            },
            "trace": records,
        }

        output_file = output_dir / f"trace_{precision.value}.json"
        with output_file.open("w") as f:
            json.dump(output, f, indent=2)

        passed = sum(1 for r in records if r.get("passed"))
        print(f"✓ {passed}/{len(records)} runs passed verification")
        results[precision.value] = records

    print(f"\nPrecision traces saved to: {output_dir}")
    return results


def write_summary(
    results: dict[str, list[dict]],
    output_dir: Path | None = None,
) -> None:
    """Summarize mean time and worst residual per preset and path."""
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"

    summary: dict[str, dict[str, dict[str, float]]] = {}
    for precision, records in results.items():
        summary[precision] = {}
        for path in ("symmetric", "general"):
            runs = [
                r
                for r in records
                if r["converged"] and r["symmetric"] == (path == "symmetric")
            ]
            if not runs:
                continue
            summary[precision][path] = {
                "runs": len(runs),
                "mean_time_seconds": sum(r["algorithm_time"] for r in runs) / len(runs),
                "max_residual": max(r["residual_norm"] for r in runs),
            }

    output_file = output_dir / "trace_summary.json"
    with output_file.open("w") as f:
        json.dump(summary, f, indent=2)

    print("\n  Preset summary:")
    for precision, paths in summary.items():
        for path, stats in paths.items():
            print(
                f"    {precision} {path}: {stats['runs']} runs, "
                f"mean {stats['mean_time_seconds'] * 1e3:.2f} ms, "
                f"max residual {stats['max_residual']:.2e}"
            )


def main() -> None:
    """Generate all traces for eigen-lab benchmarks."""
    print("=" * 70)
    print("Eigen Lab - Trace Data Generation")
    print("=" * 70)

    output_dir = Path(__file__).parent / "traces"

    results = generate_precision_traces(output_dir=output_dir)
    write_summary(results, output_dir=output_dir)

    print("\n" + "=" * 70)
    print("✓ All traces generated successfully!")
    print("=" * 70)
    print(f"\nOutput directory: {output_dir.absolute()}")
    print("\nGenerated files:")
    for trace_file in sorted(output_dir.glob("trace_*.json")):
        size_kb = trace_file.stat().st_size / 1024
        print(f"  - {trace_file.name} ({size_kb:.1f} KB)")


if __name__ == "__main__":
    main()
