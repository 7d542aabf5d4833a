"""
Command-line interface for Eigen Lab.

Usage:
    eigen-lab info           Show precision presets and verification factors
    eigen-lab run            Decompose a generated test matrix
"""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from eigen_lab import __version__
from eigen_lab.algorithms.eigen import DEFAULT_MAX_ITERATIONS
from eigen_lab.algorithms.errors import ConvergenceError
from eigen_lab.algorithms.matrices import DEFAULT_SEED, SPECTRUM_TYPES, create_experiment
from eigen_lab.algorithms.verification import run_decomposition
from eigen_lab.data import (
    PrecisionFormat,
    get_spec,
    get_tolerance,
)

app = typer.Typer(
    name="eigen-lab",
    help="Dense real eigenvalue decomposition experiments",
    add_completion=False,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"eigen-lab version {__version__}")
        raise typer.Exit()


@app.callback()  # type: ignore[misc]
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log solver decisions at DEBUG level."),
    ] = False,
) -> None:
    """Eigen Lab - Eigenvalue decomposition experiments."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()  # type: ignore[misc]
def info() -> None:
    """Display precision presets usable as convergence tolerances."""
    table = Table(title="Precision Presets")

    table.add_column("Format", style="cyan", no_wrap=True)
    table.add_column("Bits", justify="right")
    table.add_column("Mantissa", justify="right")
    table.add_column("Machine ε", justify="right")
    table.add_column("Residual factor", justify="right")
    table.add_column("Orthogonality factor", justify="right")

    for fmt in PrecisionFormat:
        spec = get_spec(fmt)
        table.add_row(
            fmt.value.upper(),
            str(spec.bits),
            str(spec.mantissa_bits),
            f"{spec.machine_epsilon:.2e}",
            f"{get_tolerance(fmt, 'residual_factor'):.0f}",
            f"{get_tolerance(fmt, 'orthogonality_factor'):.0f}",
        )

    console.print(table)
    console.print(
        f"\nDefault sweep budget per eigenvalue: [bold]{DEFAULT_MAX_ITERATIONS}[/]"
    )


@app.command()  # type: ignore[misc]
def run(
    matrix_size: Annotated[
        int,
        typer.Option("--size", "-n", min=1, help="Matrix dimension"),
    ] = 8,
    spectrum_type: Annotated[
        str,
        typer.Option("--kind", "-k", help=f"Matrix kind: {', '.join(SPECTRUM_TYPES)}"),
    ] = "complex",
    condition_number: Annotated[
        float,
        typer.Option("--condition", "-c", help="Spectrum condition number κ"),
    ] = 100.0,
    seed: Annotated[
        int,
        typer.Option("--seed", "-s", help="Random seed"),
    ] = DEFAULT_SEED,
    precision: Annotated[
        str,
        typer.Option("--precision", "-p", help="Precision preset for epsilon"),
    ] = "fp64",
    max_iterations: Annotated[
        int,
        typer.Option(
            "--max-iter", "-i", min=0, help="Sweeps per eigenvalue (0 = unbounded)"
        ),
    ] = DEFAULT_MAX_ITERATIONS,
    show: Annotated[
        int,
        typer.Option("--show", help="Number of eigenvalues to print"),
    ] = 10,
) -> None:
    """Generate a test matrix, decompose it and verify the result."""
    try:
        setup = create_experiment(
            matrix_size, condition_number, seed=seed, spectrum_type=spectrum_type
        )
        trace = run_decomposition(
            setup.matrix,
            precision,
            max_iterations=max_iterations or None,
        )
    except ConvergenceError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=2) from exc

    factors = trace.factors
    path = "symmetric (tridiagonal QL)" if factors.symmetric else "general (Hessenberg QR)"
    console.print("[bold]Eigenvalue Decomposition[/]")
    console.print(f"  Matrix: {spectrum_type} {matrix_size}×{matrix_size}, seed {seed}")
    console.print(f"  Path: {path}")
    console.print(f"  Precision: {trace.precision.value.upper()} (ε = {trace.epsilon:.2e})")
    console.print(f"  Time: {trace.algorithm_time * 1e3:.2f} ms")

    values = Table(title="Eigenvalues")
    values.add_column("#", justify="right", style="dim")
    values.add_column("Real", justify="right")
    values.add_column("Imaginary", justify="right")
    for i in range(min(show, factors.size)):
        values.add_row(str(i), f"{factors.real[i]:.10g}", f"{factors.imag[i]:.10g}")
    console.print(values)
    if factors.size > show:
        console.print(f"  ... {factors.size - show} more")

    check = trace.check
    results = Table(title="Verification")
    results.add_column("Metric", style="bold")
    results.add_column("Value", justify="right")
    results.add_column("Tolerance", justify="right")
    results.add_column("Status", justify="center")
    results.add_row(
        "Residual",
        f"{check.residual_norm:.2e}",
        f"{check.residual_tolerance:.2e}",
        "✓" if check.residual_passed else "✗",
    )
    if factors.symmetric:
        results.add_row(
            "Orthogonality",
            f"{check.orthogonality_error:.2e}",
            f"{check.orthogonality_tolerance:.2e}",
            "✓" if check.orthogonality_passed else "✗",
        )
    results.add_row("Sorted", str(check.sorted), "", "")
    results.add_row(
        "Pairs consistent", "", "", "✓" if check.pairs_consistent else "✗"
    )
    console.print(results)


if __name__ == "__main__":
    app()
