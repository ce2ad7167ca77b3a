"""
Command line interface.

`housing-price train` runs one training pipeline and `housing-price predict`
answers prediction requests from the published model.
"""

import json
import logging
import sys

import click
from pydantic import ValidationError

from housing_price.components.model_predictor import PredictionService
from housing_price.core.config import ConfigurationManager
from housing_price.core.data_definitions import HousingRecord
from housing_price.core.exceptions import (
    ConfigurationError,
    DataLoadError,
    TrainingError,
    TrainingInProgressError,
)
from housing_price.core.version import __version__
from housing_price.pipeline.prediction_pipeline import PredictionPipeline
from housing_price.pipeline.progress import AsyncProgressRelay
from housing_price.pipeline.training_pipeline import RunStatus, TrainingPipeline
from housing_price.utils.record_display import describe_prediction, describe_record

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    force=True,
)

logging.getLogger("mlflow").setLevel(logging.WARNING)
logging.getLogger("lightgbm").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_REJECTED = 3


def _load_config(ctx: click.Context) -> ConfigurationManager:
    try:
        return ConfigurationManager(config_filename=ctx.obj["config"])
    except ConfigurationError as e:
        logger.error("Startup Failed: %s", e, exc_info=ctx.obj["verbose"])
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        logger.critical(
            "CRITICAL: Unexpected System Crash during startup: %s", e, exc_info=True
        )
        sys.exit(EXIT_FAILURE)


@click.group()
@click.option(
    "--config", default="config.yaml", help="Filename of the configuration file."
)
@click.option("--verbose", is_flag=True, help="Enable debug-level logging.")
@click.version_option(__version__)
@click.pass_context
def cli(ctx, config: str, verbose: bool) -> None:
    """
    Housing Price Model CLI.

    Shared options (configuration file, log level) for every subcommand.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


# =============================================================================
# TRAIN COMMAND
# =============================================================================


@cli.command()
@click.pass_context
def train(ctx) -> None:
    """
    Train, cross-validate and (if accurate enough) publish the model.

    Exit status is 0 when the model is published, 3 when it is rejected by
    the accuracy gate and 1 on failure.
    """
    config_manager = _load_config(ctx)

    try:
        # Progress is printed off the training thread; leaving the block flushes it
        with AsyncProgressRelay(click.echo) as relay:
            pipeline = TrainingPipeline.from_config(
                config_manager, progress_callback=relay
            )
            result = pipeline.run()
    except (DataLoadError, TrainingError, TrainingInProgressError) as e:
        logger.error("Training failed: %s. See logs above for details.", e)
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        logger.critical("--- Critical Pipeline Crash ---: %s", e, exc_info=True)
        sys.exit(EXIT_FAILURE)

    if result.status is RunStatus.REJECTED:
        logger.warning("Model rejected; the published artifact was left untouched.")
        sys.exit(EXIT_REJECTED)

    logger.info(
        "--- Pipeline Success: %s (Run ID: %s) ---", result.status.value, result.run_id
    )


# =============================================================================
# PREDICT COMMAND
# =============================================================================


@cli.command()
@click.option(
    "--json", "input_json", default=None, help="JSON string for one or more records."
)
@click.option(
    "--file",
    "input_file",
    default=None,
    help="Path to a CSV or JSON file for batch prediction.",
)
@click.option("--output-json", is_flag=True, help="Output predictions as JSON.")
@click.pass_context
def predict(
    ctx,
    input_json: str | None = None,
    input_file: str | None = None,
    output_json: bool = False,
) -> None:
    """
    Run inference using the published model.

    Records come from a JSON string or a CSV/JSON file. Results are printed
    one line per record, or as a JSON array with --output-json. Exit status
    is 1 if any record could not be priced.
    """
    # Reject bad usage before loading the configuration or the model
    if input_file and input_json:
        raise click.UsageError("Use either --file or --json, not both.")

    if not input_file and not input_json:
        raise click.UsageError("Nothing to predict: Must provide --file or --json.")

    config_manager = _load_config(ctx)
    service = PredictionService(model_path=config_manager.get_model_path())

    try:
        outcome = PredictionPipeline(
            prediction_service=service,
            input_json=input_json,
            input_file=input_file,
        ).run()
    except DataLoadError as e:
        logger.error("Prediction Failure: %s", e)
        sys.exit(EXIT_FAILURE)

    if output_json:
        # Machine-readable output only; logs go to stderr
        payload = [result.model_dump() for result in outcome.results]
        click.echo(json.dumps(payload, indent=4))
    else:
        logger.info("Service Version: %s", __version__)
        for i, (record, result) in enumerate(zip(outcome.records, outcome.results)):
            rendered = ", ".join(
                f"{label}: {value}" for label, value in describe_prediction(result).items()
            )
            click.echo(f"Record {i + 1}: {rendered}")
            try:
                details = describe_record(HousingRecord.model_validate(record))
            except ValidationError:
                # Invalid records are already explained by their error
                continue
            click.echo("    " + ", ".join(f"{k}: {v}" for k, v in details.items()))

    if outcome.failed_count:
        logger.error(
            "%s of %s predictions unavailable.",
            outcome.failed_count,
            len(outcome.results),
        )
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    cli()
