"""Library usage: train parameter groups, pick models and install a prediction function.

This example demonstrates:
- Expanding fitParam.<n>.<key> parameters into parallel training groups
- Selecting the best candidate, an explicit index or the whole ensemble
- Keeping older model versions and reading the history
- Registering a row-level prediction function

Run with: python examples/random_forest_groups.py
"""

import asyncio
import tempfile

import pandas as pd
import structlog
from sklearn.datasets import load_iris  # type: ignore[import-untyped]

from fitkit import FunctionRegistry, ModelExplainer, ModelPathManager, RandomForestAlgorithm, configure_logging
from fitkit.modules.algorithm import AlgorithmRegistry

log = structlog.get_logger()

TRAIN_PARAMS = {
    "fitParam.0.numTrees": "3",
    "fitParam.0.maxDepth": "1",
    "fitParam.1.numTrees": "40",
    "fitParam.1.maxDepth": "4",
    "fitParam.1.seed": "42",
    "evaluateMetric": "accuracy",
    "keepVersion": "true",
}


def iris_frame() -> pd.DataFrame:
    """Iris features with integer class labels."""
    data = load_iris(as_frame=True).frame
    return data.rename(columns={"target": "label"})


async def run(root: str) -> dict[str, pd.DataFrame]:
    """Train twice under root and collect the tables worth looking at."""
    data = iris_frame()
    train = data.sample(frac=0.7, random_state=3)
    holdout = data.drop(train.index)

    path_manager = ModelPathManager()
    algorithm = RandomForestAlgorithm(path_manager=path_manager)

    summary = await algorithm.train(train, root, TRAIN_PARAMS, evaluation_data=holdout)
    await algorithm.train(train, root, TRAIN_PARAMS, evaluation_data=holdout)
    log.info("trained", version=summary.version, metrics=[c.metric for c in summary.candidates])

    features = holdout.drop(columns=["label"])
    best = algorithm.batch_predict(features, root)
    first = algorithm.batch_predict(features, root, {"algIndex": "0", "modelVersion": "0"})

    functions = FunctionRegistry()
    ensemble = algorithm.predict(algorithm.load(root, {"ensemble": "true"}), "iris_class", registry=functions)
    row = features.iloc[0].to_numpy()
    log.info(
        "registered",
        functions=functions.list_all(),
        prediction=functions.get("iris_class")(row),
        member_scores=ensemble.scores(row),
    )

    explainer = ModelExplainer(path_manager, AlgorithmRegistry)
    return {
        "summary": summary.to_dataframe(),
        "best": best,
        "first": first,
        "history": explainer.model_history(root),
        "model": explainer.explain_model("RandomForest", root),
    }


if __name__ == "__main__":
    configure_logging()
    with tempfile.TemporaryDirectory() as tmp:
        tables = asyncio.run(run(f"{tmp}/iris"))
    for name, table in tables.items():
        print(f"\n== {name}\n{table.head(10).to_string()}")
