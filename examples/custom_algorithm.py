"""Custom algorithm plugin built on a scikit-learn estimator.

This example demonstrates:
- Declaring a ParamSchema with typed defaults
- Reusing SklearnClassifierTrainer and ProbabilityClassifierModel
- Registering the plugin so MLManager and the REST surface can use it by name

Run with: python examples/custom_algorithm.py
"""

import asyncio
import tempfile
from typing import Any

import numpy as np
import pandas as pd
import structlog
from sklearn.naive_bayes import GaussianNB  # type: ignore[import-untyped]

from fitkit import configure_logging
from fitkit.modules.algorithm import (
    AlgorithmRegistry,
    BaseAlgorithm,
    ProbabilityClassifierModel,
    SklearnClassifierTrainer,
)
from fitkit.modules.ml import MLManager
from fitkit.modules.params import FitParams, ParamSchema, ParamSpec
from fitkit.modules.training import TrainRequest, TrainSummary

log = structlog.get_logger()


@AlgorithmRegistry.register("NaiveBayes")
class NaiveBayesAlgorithm(BaseAlgorithm):
    """Gaussian naive Bayes classifier."""

    name = "NaiveBayes"

    schema = ParamSchema(
        [
            ParamSpec(name="varSmoothing", kind="float", default=1e-9, description="Variance added for stability"),
            ParamSpec(name="labelCol", default="label", description="Label column"),
            ParamSpec(name="featureCols", kind="list", default=(), description="Feature columns"),
        ]
    )

    @property
    def param_schema(self) -> ParamSchema:
        return self.schema

    def create_trainer(self) -> SklearnClassifierTrainer:
        return SklearnClassifierTrainer(self.schema, self._build_estimator, ProbabilityClassifierModel)

    @staticmethod
    def _build_estimator(params: FitParams) -> GaussianNB:
        return GaussianNB(var_smoothing=params["varSmoothing"])

    def describe_model(self, model: Any) -> dict[str, Any]:
        estimator = model.estimator
        return {
            **super().describe_model(model),
            "classes": model.classes.tolist(),
            "class_prior": np.round(estimator.class_prior_, 6).tolist(),
        }


def sensor_frame(rows: int = 120, seed: int = 5) -> pd.DataFrame:
    """Two noisy sensor readings that separate healthy from faulty machines."""
    rng = np.random.default_rng(seed)
    faulty = rng.random(rows) < 0.4
    return pd.DataFrame(
        {
            "vibration": rng.normal(np.where(faulty, 3.0, 1.0), 0.5),
            "temperature": rng.normal(np.where(faulty, 80.0, 60.0), 5.0),
            "label": np.where(faulty, "faulty", "healthy"),
        }
    )


async def train_and_explain(manager: MLManager, path: str) -> tuple[TrainSummary, pd.DataFrame]:
    """Train two smoothing settings and explain the winner."""
    manager.add_dataset("sensors_holdout", sensor_frame(rows=60, seed=9))

    summary = await manager.execute_train(
        "NaiveBayes",
        TrainRequest(
            data=sensor_frame(),
            path=path,
            params={
                "fitParam.0.varSmoothing": "1e-9",
                "fitParam.1.varSmoothing": "0.5",
                "evaluateTable": "sensors_holdout",
            },
        ),
    )
    log.info("naive_bayes_trained", metrics=[c.metric for c in summary.candidates])
    return summary, manager.explain_model("NaiveBayes", path)


if __name__ == "__main__":
    configure_logging()
    with tempfile.TemporaryDirectory() as tmp:
        summary, explained = asyncio.run(train_and_explain(MLManager(), f"{tmp}/sensors"))
    print(summary.to_dataframe().to_string())
    print(explained.to_string())
