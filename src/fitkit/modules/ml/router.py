"""REST API router for ML train/predict/register/explain operations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import Depends, HTTPException, status

from fitkit.core.api.router import Router
from fitkit.core.logging import get_logger
from fitkit.core.schemas import PandasDataFrame
from fitkit.modules.training import TrainRequest, TrainSummary

from .manager import MLManager
from .schemas import ExplainModelIn, PredictIn, PredictOut, RegisterIn, RegisterOut, TableOut, TrainIn

T = TypeVar("T")

logger = get_logger(__name__)


async def _handle_errors(call: Callable[[], Awaitable[T]]) -> T:
    """Map the error taxonomy to HTTP status codes."""
    try:
        return await call()
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e).strip("'\""))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except RuntimeError as e:
        logger.error("ml_request_failed", error=str(e))
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


class MLRouter(Router):
    """Router with $train, $predict, $register and explain operations."""

    def __init__(
        self,
        prefix: str,
        tags: list[str],
        manager_factory: Any,
        **kwargs: Any,
    ) -> None:
        """Initialize ML router with manager factory."""
        self.manager_factory = manager_factory
        super().__init__(prefix=prefix, tags=tags, **kwargs)

    def _register_routes(self) -> None:
        """Register ML routes."""
        manager_factory = self.manager_factory

        @self.router.post(
            "/$train",
            response_model=TrainSummary,
            status_code=status.HTTP_201_CREATED,
            summary="Train model",
            description="Train every fitParam group and persist the candidates under a versioned root",
        )
        async def train(request: TrainIn, manager: MLManager = Depends(manager_factory)) -> TrainSummary:
            async def run() -> TrainSummary:
                train_request = TrainRequest(
                    data=request.data.to_dataframe(),
                    path=request.path,
                    params=request.params,
                    evaluation_data=request.evaluation.to_dataframe() if request.evaluation else None,
                )
                return await manager.execute_train(request.algorithm, train_request)

            return await _handle_errors(run)

        @self.router.post(
            "/$predict",
            response_model=PredictOut,
            summary="Make predictions",
            description="Predict rows with the best, an explicit or all persisted candidates",
        )
        async def predict(request: PredictIn, manager: MLManager = Depends(manager_factory)) -> PredictOut:
            async def run() -> PredictOut:
                predictions = await manager.execute_predict(
                    request.algorithm, request.data.to_dataframe(), request.path, request.params
                )
                return PredictOut(predictions=PandasDataFrame.from_dataframe(predictions))

            return await _handle_errors(run)

        @self.router.post(
            "/$register",
            response_model=RegisterOut,
            summary="Register prediction function",
            description="Materialize the selected models once and install them as named functions",
        )
        async def register(request: RegisterIn, manager: MLManager = Depends(manager_factory)) -> RegisterOut:
            async def run() -> RegisterOut:
                ensemble = await manager.register(request.algorithm, request.path, request.name, request.params)
                return RegisterOut(
                    name=request.name,
                    functions=sorted(ensemble.functions(request.name)),
                    members=len(ensemble),
                )

            return await _handle_errors(run)

        @self.router.post(
            "/$explain-model",
            response_model=TableOut,
            summary="Explain trained model",
            description="Internal parameters and statistics of the selected trained models",
        )
        async def explain_model(request: ExplainModelIn, manager: MLManager = Depends(manager_factory)) -> TableOut:
            async def run() -> TableOut:
                frame = await asyncio.to_thread(manager.explain_model, request.algorithm, request.path, request.params)
                return TableOut.from_dataframe(frame)

            return await _handle_errors(run)

        @self.router.get(
            "/algorithms",
            response_model=TableOut,
            summary="List algorithms",
        )
        async def list_algorithms(manager: MLManager = Depends(manager_factory)) -> TableOut:
            return TableOut.from_dataframe(manager.explainer.list_algorithms())

        @self.router.get(
            "/algorithms/{name}/params",
            response_model=TableOut,
            summary="Explain algorithm parameters",
        )
        async def explain_params(name: str, manager: MLManager = Depends(manager_factory)) -> TableOut:
            async def run() -> TableOut:
                return TableOut.from_dataframe(manager.explain_params(name))

            return await _handle_errors(run)

        @self.router.get(
            "/models/history",
            response_model=TableOut,
            summary="Model version history",
        )
        async def model_history(path: str, manager: MLManager = Depends(manager_factory)) -> TableOut:
            async def run() -> TableOut:
                return TableOut.from_dataframe(await asyncio.to_thread(manager.model_history, path))

            return await _handle_errors(run)
