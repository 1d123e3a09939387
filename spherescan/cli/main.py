from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from ..config import load_config
from ..examples.synthetic import generate_mesh
from ..sdk.run import scan_from_config

app = typer.Typer(help="Spherescan spherical LIDAR sweep utilities")
mesh_app = typer.Typer(help="Synthetic mesh helpers")
app.add_typer(mesh_app, name="mesh")


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric, format="[%(levelname)s] %(message)s")
    logging.getLogger("spherescan").setLevel(numeric)


@app.command("scan")
def scan(
    config: Path = typer.Argument(..., exists=True, readable=True, help="Path to YAML configuration file."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Override output directory for the PCD file."),
    rays: Optional[int] = typer.Option(None, "--rays", help="Override rays per axis."),
    range_: Optional[float] = typer.Option(None, "--range", help="Override maximum sensor range."),
    finish: Optional[bool] = typer.Option(
        None, "--finish/--incremental", help="Finish the sweep synchronously, or step it cell by cell. Defaults to the config mode."
    ),
    realtime: bool = typer.Option(False, "--realtime", help="Pace incremental steps by the configured ray interval."),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level (e.g. INFO, DEBUG)."),
) -> None:
    """Run one full sweep described by a YAML config and write a PCD file."""

    if rays is not None and rays < 1:
        raise typer.BadParameter("rays must be >= 1.", param_hint="--rays")
    if range_ is not None and range_ <= 0.0:
        raise typer.BadParameter("range must be positive.", param_hint="--range")
    _configure_logging(log_level)

    cfg = load_config(config)
    result = scan_from_config(
        cfg,
        output_dir=output_dir,
        rays_per_axis=rays,
        range=range_,
        finish=finish,
        realtime=realtime,
    )
    typer.echo(f"Scan_{result.session_id}: {result.points} points from {result.cells} rays → {result.output_path}")


@mesh_app.command("generate")
def mesh_generate(
    output: Path = typer.Argument(..., help="Output mesh path (.ply)."),
    preset: str = typer.Option("room", "--preset", help="Synthetic mesh preset (room, plane, demo)."),
    size: float = typer.Option(10.0, "--size", help="Scene extent scaling factor."),
) -> None:
    """Generate a synthetic colored mesh useful for sweep demos."""

    if size <= 0.0:
        raise typer.BadParameter("size must be positive.", param_hint="--size")
    out = output.resolve()
    try:
        generate_mesh(preset=preset, size=size, path=out)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--preset") from exc
    typer.echo(f"Wrote synthetic mesh to {out}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
