from backend.app.wizard.drafts import (
    Draft,
    DraftAutosaver,
    DraftStore,
    InMemoryDraftStore,
    JsonFileDraftStore,
)
from backend.app.wizard.machine import WizardStateMachine
from backend.app.wizard.steps import STEP_NAMES, StepState

__all__ = [
    "STEP_NAMES",
    "Draft",
    "DraftAutosaver",
    "DraftStore",
    "InMemoryDraftStore",
    "JsonFileDraftStore",
    "StepState",
    "WizardStateMachine",
]
