"""Context loading: models, budget, ingestion engine, and persistence."""

from ctxload.context.models import ContextKind, ContextUnit, PlanState

__all__ = ["ContextKind", "ContextUnit", "PlanState"]
