"""Command Line Interface for the pretrial equity pipeline"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .core.config import Config
from .core.model_trainer import ModelArtifact
from .data.load import load_catalog, load_cleaned, load_dataset
from .pipeline import CLEANED_FILE, PretrialEquityPipeline, model_path
from .utils.error_handler import PipelineError

app = typer.Typer(help="Pretrial equity pipeline CLI")

DATA_HELP = "Input data file (.sav, .zsav, .por, .dta or .csv)"
CATALOG_HELP = "Variable catalog CSV (value, keep, outcome, discrim[, label])"
CONFIG_HELP = "Path to a JSON config file or inline JSON string"


def _load_config(
    config_json: Optional[str],
    output: str,
    n_jobs: Optional[int] = None,
    sample_size: Optional[int] = None,
) -> Config:
    payload: Dict[str, Any] = {}
    if config_json:
        try:
            if os.path.exists(config_json):
                with open(config_json, "r", encoding="utf-8") as f:
                    payload = json.load(f)
            else:
                payload = json.loads(config_json)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"Invalid config JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise typer.BadParameter("Config JSON must be an object.")

    payload["output_folder"] = output
    if n_jobs is not None:
        payload["n_jobs"] = n_jobs
    if sample_size is not None:
        payload["sample_size"] = sample_size
    return Config.from_dict(payload)


def _fail(stage: str, message: str) -> None:
    typer.echo(f"{stage} stage failed: {message}", err=True)
    raise typer.Exit(code=1)


def _pipeline(catalog: str, config_json: Optional[str], output: str, **overrides) -> PretrialEquityPipeline:
    try:
        cfg = _load_config(config_json, output, **overrides)
        return PretrialEquityPipeline(cfg, load_catalog(catalog))
    except PipelineError as exc:
        _fail(exc.stage or "config", str(exc))


@app.command()
def clean(
    data: str = typer.Option(..., help=DATA_HELP),
    catalog: str = typer.Option(..., help=CATALOG_HELP),
    output: str = typer.Option("outputs", help="Output folder"),
    config_json: Optional[str] = typer.Option(None, "--config", help=CONFIG_HELP),
):
    """Recode, coerce and filter the raw file; saves the cleaned table."""
    pipe = _pipeline(catalog, config_json, output)
    with pipe:
        try:
            raw = load_dataset(data)
        except (FileNotFoundError, ValueError) as exc:
            _fail("load", str(exc))
        try:
            cleaned = pipe.clean(raw)
        except PipelineError as exc:
            _fail(exc.stage or "clean", str(exc))
    typer.echo(f"Cleaned {cleaned.data.shape[0]} rows x {cleaned.data.shape[1]} columns -> {output}")


@app.command()
def train(
    catalog: str = typer.Option(..., help=CATALOG_HELP),
    output: str = typer.Option("outputs", help="Output folder holding the cleaned data"),
    config_json: Optional[str] = typer.Option(None, "--config", help=CONFIG_HELP),
    n_jobs: Optional[int] = typer.Option(None, help="Parallel workers for the grid search (-1 = most cores)"),
    sample_size: Optional[int] = typer.Option(None, help="Also train sampled_* models on this many rows"),
):
    """Train the model variants on a previously cleaned table."""
    pipe = _pipeline(catalog, config_json, output, n_jobs=n_jobs, sample_size=sample_size)
    with pipe:
        try:
            cleaned = load_cleaned(Path(output) / CLEANED_FILE)
        except (FileNotFoundError, TypeError) as exc:
            _fail("load", str(exc))
        try:
            models = pipe.train(cleaned)
        except PipelineError as exc:
            _fail(exc.stage or "train", str(exc))
    typer.echo(f"Trained {len(models)} models: {', '.join(models)} -> {output}")


@app.command()
def evaluate(
    catalog: str = typer.Option(..., help=CATALOG_HELP),
    output: str = typer.Option("outputs", help="Output folder holding cleaned data and models"),
    config_json: Optional[str] = typer.Option(None, "--config", help=CONFIG_HELP),
    sample_size: Optional[int] = typer.Option(None, help="Include the sampled_* models"),
):
    """Write the equity report for saved models."""
    pipe = _pipeline(catalog, config_json, output, sample_size=sample_size)
    with pipe:
        try:
            cleaned = load_cleaned(Path(output) / CLEANED_FILE)
            models = {v: ModelArtifact.load(model_path(output, v)) for v in pipe.cfg.variant_names}
        except (FileNotFoundError, TypeError) as exc:
            _fail("load", str(exc))
        try:
            tables = pipe.evaluate(cleaned, models)
        except PipelineError as exc:
            _fail(exc.stage or "evaluate", str(exc))
    typer.echo(f"Wrote {len(tables)} tables -> {output}")


@app.command()
def run(
    data: str = typer.Option(..., help=DATA_HELP),
    catalog: str = typer.Option(..., help=CATALOG_HELP),
    output: str = typer.Option("outputs", help="Output folder"),
    config_json: Optional[str] = typer.Option(None, "--config", help=CONFIG_HELP),
    n_jobs: Optional[int] = typer.Option(None, help="Parallel workers for the grid search (-1 = most cores)"),
    sample_size: Optional[int] = typer.Option(None, help="Also train sampled_* models on this many rows"),
):
    """Run clean, train and evaluate in one go."""
    pipe = _pipeline(catalog, config_json, output, n_jobs=n_jobs, sample_size=sample_size)
    try:
        raw = load_dataset(data)
    except (FileNotFoundError, ValueError) as exc:
        pipe.close()
        _fail("load", str(exc))
    try:
        results = pipe.run(raw)
    except PipelineError as exc:
        _fail(exc.stage or "run", str(exc))

    for variant, stats in results["metrics"]["models"].items():
        typer.echo(f"{variant}: test accuracy {stats['test_accuracy']:.3f}")
    typer.echo(f"Done. Reports -> {output}")


def main():
    """Console entrypoint for pretrial-equity CLI."""
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    app()


if __name__ == "__main__":
    main()
