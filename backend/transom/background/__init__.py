from .autosave import AutosaveController, DraftSession, SaveState
from .projects import refresh_project_note_count

__all__ = [
    "AutosaveController",
    "DraftSession",
    "SaveState",
    "refresh_project_note_count",
]
