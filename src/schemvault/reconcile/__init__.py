"""
Exposes the public interface of the reconcile package.
"""
from .reconciler import (
    AwaitingDecision,
    DecisionRequest,
    LoadReconciler,
    Pending,
    Ready,
    ReconcilerState,
    choose_initial_sheet,
)

__all__ = [
    "AwaitingDecision",
    "DecisionRequest",
    "LoadReconciler",
    "Pending",
    "Ready",
    "ReconcilerState",
    "choose_initial_sheet",
]
