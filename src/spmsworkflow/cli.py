"""Typer CLI entrypoint for rating reports."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pydantic
import typer
import yaml

from .container import create_container
from .core import classify
from .logging import configure_logging
from .schemas.config import load_config

app = typer.Typer(help="Performance rating workflow tools.")


@app.command()
def report(
    records: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Performance records JSONL path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    awards: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="Award records JSONL path."),
    period: Optional[str] = typer.Option(None, help="Only include records of this rating period."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Consolidate ratings and list award-eligible staff."""
    settings = _load_settings(config)
    configure_logging(log_level)

    container = create_container(settings=settings)
    pipeline = container.pipeline()
    payload = pipeline.run(
        records_path=records,
        output_path=output,
        awards_path=awards,
        period_id=period,
    )
    consolidation = payload["consolidation"]
    typer.echo(
        f"Consolidated {consolidation['qualifying_count']} rated records "
        f"(violation: {str(consolidation['violation']).lower()}). Report saved to {output}."
    )


@app.command("classify")
def classify_command(average: float = typer.Argument(..., help="Numeric average rating.")) -> None:
    """Print the adjectival rating for an average."""
    typer.echo(classify(average).value)


def _load_settings(config: Path | None) -> dict:
    if not config:
        return {}
    with config.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle)
    try:
        return load_config(loaded).to_settings()
    except pydantic.ValidationError as exc:
        raise typer.BadParameter(f"Invalid config: {exc}", param_name="config") from exc


def main() -> None:
    app()


if __name__ == "__main__":
    main()
