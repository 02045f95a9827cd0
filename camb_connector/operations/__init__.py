"""Operation registry: one handler class per (resource, operation) pair.

WHY: The CLI and the batch runner need a single lookup from an operation
kind to the class that implements it. Keying a dict by OperationKind keeps
dispatch a lookup instead of a chain of conditionals, and
test_every_kind_is_registered catches a kind with no handler.

HOW: OPERATIONS maps OperationKind members to operation *classes* (not
instances). Callers instantiate as needed: ``get_operation(kind)``.

RULES:
- Every OperationKind member has exactly one entry
- Values are BaseOperation subclasses whose ``kind`` matches their key
"""

from __future__ import annotations

from camb_connector.operations.audio_separation import SeparateAudioOperation
from camb_connector.operations.base import (
    BaseOperation,
    OperationContext,
    OperationKind,
    TaskOperation,
)
from camb_connector.operations.languages import (
    ListSourceLanguagesOperation,
    ListTargetLanguagesOperation,
)
from camb_connector.operations.sound import GenerateSoundOperation
from camb_connector.operations.speech import SynthesizeOperation, TranslatedTtsOperation
from camb_connector.operations.transcription import TranscribeOperation
from camb_connector.operations.translation import TranslateOperation
from camb_connector.operations.voices import (
    CreateCustomVoiceOperation,
    ListVoicesOperation,
    TextToVoiceOperation,
)

OPERATIONS: dict[OperationKind, type[BaseOperation]] = {
    cls.kind: cls
    for cls in (
        ListVoicesOperation,
        CreateCustomVoiceOperation,
        TextToVoiceOperation,
        SynthesizeOperation,
        TranslatedTtsOperation,
        GenerateSoundOperation,
        SeparateAudioOperation,
        TranscribeOperation,
        TranslateOperation,
        ListSourceLanguagesOperation,
        ListTargetLanguagesOperation,
    )
}


def get_operation(kind: OperationKind) -> BaseOperation:
    """Instantiate the handler registered for kind."""
    return OPERATIONS[kind]()


__all__ = [
    "OPERATIONS",
    "BaseOperation",
    "OperationContext",
    "OperationKind",
    "TaskOperation",
    "get_operation",
]
