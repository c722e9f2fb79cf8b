"""Read-only introspection of algorithms and trained models."""

from .explainer import ModelExplainer

__all__ = ["ModelExplainer"]
