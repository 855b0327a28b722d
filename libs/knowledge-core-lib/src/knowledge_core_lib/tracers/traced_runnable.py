"""MLflow tracing around tenant-scoped runnables."""

import json
import logging
import os
import time
import uuid
from typing import Any, Optional

import mlflow
from langchain_core.runnables import Runnable, RunnableConfig, ensure_config

from knowledge_core_lib.impl.settings.mlflow_settings import MlflowSettings
from knowledge_core_lib.runnables.async_runnable import AsyncRunnable

logger = logging.getLogger(__name__)

RunnableInput = Any
RunnableOutput = Any


class TracedRunnable(AsyncRunnable[RunnableInput, RunnableOutput]):
    """
    Record each call of the wrapped runnable as an MLflow run.

    Runs are tagged with session, tenant and component. The serialized input
    and output go to ``inputs/io.json`` and ``outputs/io.json``; latency and,
    for list outputs, the result count and best ``score`` are logged as metrics.
    Tracing problems are logged and never fail the call.
    """

    SESSION_ID_KEY = "session_id"
    TENANT_ID_KEY = "tenant_id"
    METADATA_KEY = "metadata"

    def __init__(self, inner_chain: Runnable, settings: MlflowSettings):
        self._inner_chain = inner_chain
        self._settings = settings
        if settings.api_token:
            os.environ.setdefault("MLFLOW_TRACKING_TOKEN", settings.api_token)
        mlflow.set_tracking_uri(settings.tracking_uri)
        if settings.experiment_name:
            mlflow.set_experiment(settings.experiment_name)

    @property
    def inner_chain(self) -> Runnable:
        return self._inner_chain

    def _run_tags(self, config: RunnableConfig) -> dict[str, str]:
        metadata = config.get(self.METADATA_KEY, {})
        return {
            "session_id": str(metadata.get(self.SESSION_ID_KEY) or uuid.uuid4()),
            "tenant_id": str(metadata.get(self.TENANT_ID_KEY) or ""),
            "component": self._inner_chain.__class__.__name__,
        }

    async def ainvoke(
        self, chain_input: RunnableInput, config: Optional[RunnableConfig] = None, **kwargs: Any
    ) -> RunnableOutput:
        config = ensure_config(config)
        tags = self._run_tags(config)

        parent = mlflow.active_run()
        if parent:
            mlflow.start_run(run_id=parent.info.run_id, nested=True, tags=tags)
        else:
            mlflow.start_run(run_name=tags["component"], tags=tags)
        try:
            self._log_artifact({"input": self._to_json(chain_input)}, "inputs/io.json")
            started = time.perf_counter()
            output = await self._inner_chain.ainvoke(chain_input, config=config)
            self._log_outcome(output, time.perf_counter() - started)
            return output
        finally:
            if not parent:
                mlflow.end_run()

    def _log_outcome(self, output: Any, elapsed: float) -> None:
        metrics = {"latency_seconds": elapsed}
        if isinstance(output, list):
            metrics["results_count"] = float(len(output))
            scores = [item.score for item in output if isinstance(getattr(item, "score", None), (int, float))]
            if scores:
                metrics["top_score"] = float(max(scores))
        try:
            mlflow.log_metrics(metrics)
        except Exception:
            logger.warning("Failed to log metrics to MLflow", exc_info=True)
        self._log_artifact({"output": self._to_json(output)}, "outputs/io.json")

    @staticmethod
    def _log_artifact(payload: dict, artifact_file: str) -> None:
        try:
            json.dumps(payload)
        except TypeError:
            payload = {"raw": str(payload)}
        try:
            mlflow.log_dict(payload, artifact_file)
        except Exception:
            logger.warning("Failed to log %s to MLflow", artifact_file, exc_info=True)

    def _to_json(self, obj: Any) -> Any:
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        if isinstance(obj, (list, tuple)):
            return [self._to_json(item) for item in obj]
        try:
            json.dumps(obj)
        except TypeError:
            return str(obj)
        return obj
