"""REST service training and serving scikit-learn classifiers on the iris dataset.

This example demonstrates:
- Wiring an MLManager with local model storage and a dataset catalog
- Resolving evaluateTable against the catalog
- Building the service with MLServiceBuilder (health, info and ML endpoints)

Run with: fastapi dev examples/ml_service.py

Then train two forests and predict with the best one:

    curl -X POST 'localhost:8000/api/v1/ml/$train' -H 'Content-Type: application/json' -d '{
      "algorithm": "RandomForest", "path": "iris",
      "params": {"fitParam.0.numTrees": 5, "fitParam.1.numTrees": 50, "evaluateTable": "iris_holdout"},
      "data": {"columns": ["sepal_length", "sepal_width", "petal_length", "petal_width", "label"], "data": [...]}
    }'
"""

import tempfile
from pathlib import Path

import pandas as pd
import structlog
from sklearn.datasets import load_iris  # type: ignore[import-untyped]

from fitkit.api import MLServiceBuilder, ServiceInfo
from fitkit.modules.ml import MLManager
from fitkit.modules.versioning import LocalModelStorage, ModelPathManager

log = structlog.get_logger()

FEATURES = ["sepal_length", "sepal_width", "petal_length", "petal_width"]


def load_iris_frame() -> pd.DataFrame:
    """Iris measurements with a string label column."""
    dataset = load_iris(as_frame=True)
    data = dataset.frame.copy()
    data.columns = [*FEATURES, "target"]
    data["label"] = [str(dataset.target_names[t]) for t in data.pop("target")]
    return data


iris = load_iris_frame()
holdout = iris.sample(frac=0.3, random_state=11)

MODEL_DIR = Path(tempfile.mkdtemp(prefix="fitkit-models-"))
log.info("model_storage", base_dir=str(MODEL_DIR))

manager = MLManager(
    path_manager=ModelPathManager(LocalModelStorage(MODEL_DIR)),
    catalog={"iris_holdout": holdout},
    max_concurrency=4,
)

info = ServiceInfo(
    display_name="Iris Classifier Service",
    version="1.0.0",
    summary="Multi-group training with versioned model storage",
    description="Train random forests and logistic regressions over parameter groups and predict with the best",
    contact={"email": "ml-platform@example.com"},
)

app = MLServiceBuilder(info=info, manager=manager, include_logging=True).with_health().with_ml().build()
