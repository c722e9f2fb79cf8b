"""Multi-group training orchestration."""

from .orchestrator import TrainingOrchestrator
from .schemas import (
    EvaluationResult,
    Evaluator,
    GroupTrainer,
    TrainedCandidate,
    TrainerFactory,
    TrainingRun,
    TrainRequest,
    TrainSummary,
)

__all__ = [
    "EvaluationResult",
    "Evaluator",
    "GroupTrainer",
    "TrainRequest",
    "TrainSummary",
    "TrainedCandidate",
    "TrainerFactory",
    "TrainingOrchestrator",
    "TrainingRun",
]
