"""Change batching and hot-update propagation."""

from fable_vite.hmr.batcher import ChangeBatcher
from fable_vite.hmr.events import ChangeEvent, PendingChangeBatch, ProjectFileChanged, SourceFileChanged
from fable_vite.hmr.propagator import HOT_UPDATE_DEPENDENTS, HotUpdatePropagator
from fable_vite.hmr.signal import CompletionSignal

__all__ = [
    "HOT_UPDATE_DEPENDENTS",
    "ChangeBatcher",
    "ChangeEvent",
    "CompletionSignal",
    "HotUpdatePropagator",
    "PendingChangeBatch",
    "ProjectFileChanged",
    "SourceFileChanged",
]
