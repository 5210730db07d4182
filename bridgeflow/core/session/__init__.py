from .session import Direction, Selection, TransferSession
from .wizard import TransferWizard, WizardStep

__all__ = [
    "Direction",
    "Selection",
    "TransferSession",
    "TransferWizard",
    "WizardStep",
]
