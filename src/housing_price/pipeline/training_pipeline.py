"""
Orchestration module for the End-to-End Model Training Pipeline.

This module defines the `TrainingPipeline` class, which serves as the central
controller for the machine learning workflow. It executes the following
sequential phases:
1. LOAD     - read and validate the training CSV
2. ENCODE   - freeze the feature encoder and encode every row
3. TRAIN    - fit the production model on all rows
4. EVALUATE - K-Fold cross-validation on the same rows
5. ACCEPT / REJECT - publish the model only if mean R2 reaches the threshold

A rejected, failed or cancelled run never touches the published artifact.
Only one run at a time may target a given artifact path. Progress messages
are emitted at every phase boundary, and failures are tagged by category in
the (optional) MLflow run before being re-raised.
"""

import logging
import threading
import traceback
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from housing_price.components.cross_validator import CrossValidator
from housing_price.components.data_ingestion import DataIngestion
from housing_price.components.feature_encoder import FeatureEncoder
from housing_price.components.model_evaluator import AggregateMetrics, ModelEvaluator
from housing_price.components.model_persister import ModelPersister
from housing_price.components.model_trainer import ModelTrainer
from housing_price.components.run_tracker import RunTracker
from housing_price.core.config import ConfigurationManager
from housing_price.core.config_definitions import (
    FeatureEncoderConfig,
    MlflowConfig,
    ModelTrainerConfig,
)
from housing_price.core.data_definitions import TARGET_COLUMN
from housing_price.core.exceptions import (
    DataLoadError,
    TrainingError,
    TrainingInProgressError,
)
from housing_price.pipeline.progress import ProgressCallback, ProgressNotifier

logger = logging.getLogger(__name__)

# One lock per resolved artifact path, shared by every pipeline in the process.
_RUN_LOCKS: dict[Path, threading.Lock] = {}
_RUN_LOCKS_GUARD = threading.Lock()


def _run_lock_for(artifact_path: Path) -> threading.Lock:
    key = Path(artifact_path).resolve()
    with _RUN_LOCKS_GUARD:
        return _RUN_LOCKS.setdefault(key, threading.Lock())


def is_model_accepted(r_squared: float, threshold: float) -> bool:
    """The publishing gate: accept iff the mean CV R2 reaches the threshold."""
    return r_squared >= threshold


class RunStatus(str, Enum):
    # FAILED is only announced on the progress channel; failed runs re-raise.
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class TrainingRunResult:
    """Terminal state of one training run."""

    status: RunStatus
    metrics: AggregateMetrics | None = None
    artifact_path: Path | None = None
    run_id: str | None = None

    @property
    def accepted(self) -> bool:
        return self.status is RunStatus.ACCEPTED


class _RunCancelled(Exception):
    pass


class TrainingPipeline:
    """
    Orchestrates the complete training lifecycle.

    This class acts as a facade, coordinating the interaction between
    specialized components (Ingestion, Encoder, Trainer, Cross-Validator,
    Persister). It owns the phase order, the accept/reject gate, the
    training-run mutex and the progress channel.
    """

    def __init__(
        self,
        trainer_config: ModelTrainerConfig,
        artifact_path: Path,
        data_ingestion: DataIngestion,
        model_trainer: ModelTrainer,
        cross_validator: CrossValidator,
        model_persister: ModelPersister,
        encoder_config: FeatureEncoderConfig | None = None,
        run_tracker: RunTracker | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """
        Initialize the pipeline with injected dependencies.

        Args:
            trainer_config (ModelTrainerConfig): Immutable configuration of the run.
            artifact_path (Path): Where an accepted model is published.
            data_ingestion (DataIngestion): Loads and validates the training file.
            model_trainer (ModelTrainer): Fits the production model.
            cross_validator (CrossValidator): Produces the gate metrics.
            model_persister (ModelPersister): Writes the accepted artifact.
            encoder_config (FeatureEncoderConfig | None): Unknown-category policy
                of the encoder frozen by this run.
            run_tracker (RunTracker | None): Optional MLflow tracking.
            progress_callback (ProgressCallback | None): Receives status messages.
        """
        self.config = trainer_config
        self.artifact_path = Path(artifact_path)
        self.ingestion = data_ingestion
        self.trainer = model_trainer
        self.cross_validator = cross_validator
        self.persister = model_persister
        self.encoder_config = encoder_config or FeatureEncoderConfig()
        self.tracker = run_tracker or RunTracker(MlflowConfig(enabled=False))
        self.progress = ProgressNotifier(progress_callback)

    @classmethod
    def from_config(
        cls,
        config_manager: ConfigurationManager,
        progress_callback: ProgressCallback | None = None,
    ) -> "TrainingPipeline":
        """Wire every component from the validated configuration."""
        trainer_config = config_manager.get_model_trainer_config()
        model_trainer = ModelTrainer(config=trainer_config)
        return cls(
            trainer_config=trainer_config,
            artifact_path=config_manager.get_artifacts_config().model_path,
            data_ingestion=DataIngestion(config_manager.get_data_ingestion_config()),
            model_trainer=model_trainer,
            cross_validator=CrossValidator(
                config=trainer_config,
                model_trainer=model_trainer,
                model_evaluator=ModelEvaluator(),
            ),
            model_persister=ModelPersister(),
            encoder_config=config_manager.get_feature_encoder_config(),
            run_tracker=RunTracker(config_manager.get_mlflow_config()),
            progress_callback=progress_callback,
        )

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def run(self, cancel_event: threading.Event | None = None) -> TrainingRunResult:
        """
        Execute one training run synchronously.

        Args:
            cancel_event (threading.Event | None): Checked between phases; when
                set, the run stops and nothing is published.

        Raises:
            TrainingInProgressError: If another run targets the same artifact.
            DataLoadError: If the training file is missing or invalid.
            TrainingError: If the dataset is empty/malformed or fitting fails.

        Returns:
            TrainingRunResult: ACCEPTED, REJECTED or CANCELLED.
        """
        lock = _run_lock_for(self.artifact_path)
        if not lock.acquire(blocking=False):
            raise TrainingInProgressError(
                f"A training run for '{self.artifact_path}' is already in progress."
            )
        try:
            return self._run(cancel_event)
        finally:
            lock.release()

    def start(
        self,
        cancel_event: threading.Event | None = None,
        executor: Executor | None = None,
    ) -> "Future[TrainingRunResult]":
        """Run the pipeline on a worker thread and return its Future."""
        if executor is not None:
            return executor.submit(self.run, cancel_event)

        own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="training")
        future = own_executor.submit(self.run, cancel_event)
        own_executor.shutdown(wait=False)
        return future

    # -------------------------------------------------------------------------
    # Phase sequence
    # -------------------------------------------------------------------------

    def _run(self, cancel_event: threading.Event | None) -> TrainingRunResult:
        model_name = self.config.model_name
        logger.info("--- Starting training pipeline for model: %s ---", model_name)
        current_step = "initialization"

        with self.tracker.start_run(run_name=f"Training_{model_name}") as run_id:
            self.tracker.log_dict(
                self.config.model_dump(mode="json"), "config/model_trainer.json"
            )
            self.tracker.log_params(
                {
                    "model_name": model_name,
                    "n_estimators": self.config.model_params.n_estimators,
                    "random_state": self.config.random_state,
                    "n_folds": self.config.cross_validation.n_folds,
                    "acceptance_threshold": self.config.acceptance_threshold,
                }
            )
            self.tracker.set_tag("pipeline_status", "running")

            try:
                # PHASE 1: LOAD
                current_step = "load"
                self._enter_step(current_step, cancel_event)
                self._echo_source_file()
                self._echo("Loading data...")
                df = self.ingestion.get_data()
                self._echo(f"Loaded {len(df):,} rows.")

                # PHASE 2: ENCODE
                current_step = "encode"
                self._enter_step(current_step, cancel_event)
                self._echo("Encoding features...")
                encoder = FeatureEncoder(
                    unknown_category_policy=self.encoder_config.unknown_category_policy
                ).fit(df)
                X = encoder.transform(df)
                y = df[TARGET_COLUMN].to_numpy(dtype=float)
                self.tracker.log_dict(encoder.describe_schema(), "encoder_schema.json")
                self._echo(f"Encoded {X.shape[0]:,} rows into {X.shape[1]} features.")

                # PHASE 3: TRAIN
                current_step = "train"
                self._enter_step(current_step, cancel_event)
                self._echo("Training model...")
                model = self.trainer.fit(X, y, encoder)
                self._echo(f"Model trained: {model.model_name} on {X.shape[0]:,} rows.")

                # PHASE 4: EVALUATE
                current_step = "evaluate"
                self._enter_step(current_step, cancel_event)
                self._echo("Evaluating model...")
                self._echo("Cross-validating to get model's accuracy metrics")
                metrics = self.cross_validator.cross_validate(X, y)
                self._report_metrics(metrics)
                self.tracker.log_metrics(
                    {f"cv_mean_{k}": v for k, v in metrics.as_dict().items()}
                )

                # PHASE 5: ACCEPT / REJECT
                current_step = "decision"
                self._enter_step(current_step, cancel_event)
                self._echo("Conclusion")
                threshold = self.config.acceptance_threshold

                if not is_model_accepted(metrics.r_squared, threshold):
                    self._echo(
                        f"The trained model has low accuracy, less than {threshold}, "
                        "and will not be published."
                    )
                    self.tracker.set_tag("pipeline_status", "rejected")
                    self._echo("End of process")
                    return TrainingRunResult(
                        status=RunStatus.REJECTED, metrics=metrics, run_id=run_id
                    )

                self._echo("The trained model has acceptable accuracy and will be published.")

                current_step = "persist"
                self._enter_step(current_step, cancel_event)
                self._echo("Saving the model...")
                artifact_path = self.persister.save(
                    model, self.artifact_path, metrics=metrics
                )
                self._echo(
                    f"Model file was published as {artifact_path.name} | "
                    f"{artifact_path.stat().st_size:,} Bytes"
                )

                self.tracker.set_tag("pipeline_status", "completed")
                self.tracker.set_tag("current_step", "completed")
                self._echo("End of process")
                return TrainingRunResult(
                    status=RunStatus.ACCEPTED,
                    metrics=metrics,
                    artifact_path=artifact_path,
                    run_id=run_id,
                )

            # --- Centralized Error Handling ---

            except _RunCancelled:
                self._handle_cancellation(current_step)
                return TrainingRunResult(status=RunStatus.CANCELLED, run_id=run_id)

            # 1. Missing/unreadable file or data contract violation (LOAD)
            except DataLoadError as e:
                self._handle_load_error(e, current_step)
                self._echo_failed()
                raise

            # 2. Empty/malformed dataset or fitting failure (TRAIN/EVALUATE)
            except TrainingError as e:
                self._handle_training_error(e, current_step)
                self._echo_failed()
                raise

            # 3. Unanticipated System Crashes (Bugs, OOM, Library changes)
            except Exception as e:
                self._handle_unknown_error(e, current_step)
                self._echo_failed()
                raise

    # -------------------------------------------------------------------------
    # Pipeline Lifecycle Helpers
    # -------------------------------------------------------------------------

    def _enter_step(self, step: str, cancel_event: threading.Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise _RunCancelled(step)
        logger.info("Step: %s", step)
        self.tracker.set_tag("current_step", step)

    def _echo(self, message: str) -> None:
        self.progress.notify(message)

    def _echo_failed(self) -> None:
        self._echo(f"End of process (status: {RunStatus.FAILED.value})")

    def _echo_source_file(self) -> None:
        source = self.ingestion.source_path
        try:
            size = source.stat().st_size
        except OSError:
            return
        self._echo(f"Processing file: {source.name} | {size:,} Bytes")

    def _report_metrics(self, metrics: AggregateMetrics) -> None:
        self._echo("Metrics for Regression model")
        self._echo(f"Mean Absolute Error:     {metrics.mean_absolute_error:.3f}")
        self._echo(f"Mean Squared Error:      {metrics.mean_squared_error:.3f}")
        self._echo(f"Root Mean Squared Error: {metrics.root_mean_squared_error:.3f}")
        self._echo(f"Average Loss Function:   {metrics.loss_function:.3f}")
        self._echo(f"Average R-squared:       {metrics.r_squared:.3f}")

    # -------------------------------------------------------------------------
    # Specialized Error Handlers
    # -------------------------------------------------------------------------

    def _handle_cancellation(self, step: str) -> None:
        logger.warning("Training cancelled before step '%s'.", step)
        self.tracker.set_tag("pipeline_status", "cancelled")
        self.tracker.set_tag("failure_step", step)
        self._echo(f"Training cancelled before '{step}'; nothing was published.")

    def _handle_load_error(self, e: DataLoadError, step: str) -> None:
        """
        Handles missing files and data contract violations.

        Args:
            e (DataLoadError): The exception raised during loading.
            step (str): The pipeline step name where the error occurred.
        """
        is_debug = logger.isEnabledFor(level=logging.DEBUG)
        logger.error("Data load failed at step '%s': %s", step, e, exc_info=is_debug)

        self.tracker.set_tag("pipeline_status", "failed")
        self.tracker.set_tag("failure_category", "data_load_error")
        self.tracker.set_tag("failure_step", step)
        self.tracker.log_text(
            f"Error: {e}\n\nACTION: Check the training file path, header and column order.",
            "data_load_error.txt",
        )
        self._echo(f"Training failed while loading data: {e}")

    def _handle_training_error(self, e: TrainingError, step: str) -> None:
        """
        Handles failures during the model fitting or cross-validation.

        Args:
            e (TrainingError): The training exception.
            step (str): The pipeline step where training failed.
        """
        is_debug = logger.isEnabledFor(level=logging.DEBUG)
        logger.error(
            "Model Training failed at step '%s': %s", step, e, exc_info=is_debug
        )

        self.tracker.set_tag("pipeline_status", "failed")
        self.tracker.set_tag("failure_category", "model_error")
        self.tracker.set_tag("failure_step", step)
        self.tracker.log_text(str(e), "training_error.txt")
        self._echo(f"Training failed at step '{step}': {e}")

    def _handle_unknown_error(self, e: Exception, step: str) -> None:
        """
        Handles unexpected/uncaught exceptions.

        Logs the full traceback to MLflow to assist in post-mortem debugging.

        Args:
            e (Exception): The unexpected exception.
            step (str): The pipeline step where the crash occurred.
        """
        is_debug = logger.isEnabledFor(level=logging.DEBUG)
        logger.error(
            "CRITICAL: Unexpected crash at step '%s': %s", step, e, exc_info=is_debug
        )

        self.tracker.set_tag("pipeline_status", "failed")
        self.tracker.set_tag("failure_category", "uncaught_exception")
        self.tracker.set_tag("error_type", type(e).__name__)
        self.tracker.set_tag("failure_step", step)
        self.tracker.log_text(traceback.format_exc(), "crash_dump.txt")
        self._echo(f"Training failed at step '{step}': {e}")
