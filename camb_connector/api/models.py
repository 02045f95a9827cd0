"""Camb.ai API request and response dataclasses.

WHY: The API returns loose JSON for task submissions, task status, voices
and languages. Typed dataclasses make these structures explicit and keep
string handling (status casing, optional fields) at the boundary.

HOW: Each dataclass maps to one API JSON object, with a from_dict factory.
RequestOptions/RequestDescriptor describe one outgoing HTTP call and are
frozen so they cannot change after construction.

RULES:
- TaskStatus is a closed enum; the wire string is uppercased once in
  TaskStatus.parse and unknown values become PENDING
- run_id on a TaskStatusEnvelope is only meaningful when status is SUCCESS
- RequestDescriptor.files is only sent when options.as_form is True
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from camb_connector.config import DEFAULT_TIMEOUT_S

# (file name, content, MIME type) as accepted by httpx multipart uploads
FilePart = Tuple[str, bytes, str]


@dataclass(frozen=True)
class RequestOptions:
    """Transport options for one request.

    Attributes:
        timeout_s: Request deadline in seconds.
        binary_response: Return the raw response bytes instead of JSON.
        skip_auth: The target is an absolute, pre-authorized URL. It is used
                   verbatim and no credentials are attached.
        as_form: Send the body as multipart form fields instead of JSON.
    """

    timeout_s: float = DEFAULT_TIMEOUT_S
    binary_response: bool = False
    skip_auth: bool = False
    as_form: bool = False


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything needed to issue one HTTP call."""

    method: str
    target: str
    body: Optional[Mapping[str, Any]] = None
    query: Optional[Mapping[str, Any]] = None
    files: Optional[Mapping[str, FilePart]] = None
    options: RequestOptions = field(default_factory=RequestOptions)


@dataclass(frozen=True)
class TaskHandle:
    """Identifier of a submitted asynchronous task."""

    task_id: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TaskHandle:
        return cls(task_id=str(data["task_id"]))


class TaskStatus(str, enum.Enum):
    """Status values reported by the task-status endpoints.

    RULES:
    - SUCCESS is the only success terminal
    - ERROR, FAILED, TIMEOUT, PAYMENT_REQUIRED are failure terminals
    - PENDING covers everything else, including unrecognized strings
    """

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    FAILED = "FAILED"
    TIMEOUT = "TIMEOUT"
    PAYMENT_REQUIRED = "PAYMENT_REQUIRED"

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus:
        if raw is None:
            return cls.PENDING
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return cls.PENDING


@dataclass
class TaskStatusEnvelope:
    """One poll response from a task-status endpoint."""

    status: TaskStatus
    run_id: Optional[str] = None
    message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> TaskStatusEnvelope:
        data = dict(data or {})
        run_id = data.get("run_id")
        message = data.get("message") or data.get("error") or data.get("exception_reason")
        return cls(
            status=TaskStatus.parse(data.get("status")),
            run_id=str(run_id) if run_id is not None else None,
            message=str(message) if message else None,
            raw=data,
        )


@dataclass
class Voice:
    """A voice from GET /list-voices."""

    id: str
    name: str
    gender: Optional[int] = None
    age: Optional[int] = None
    language: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Voice:
        return cls(
            id=str(data["id"]),
            name=str(data.get("voice_name") or data.get("name") or data["id"]),
            gender=data.get("gender"),
            age=data.get("age"),
            language=data.get("language"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender,
            "age": self.age,
            "language": self.language,
        }


@dataclass
class Language:
    """A language from GET /source-languages or /target-languages."""

    id: int
    language: str
    short_name: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Language:
        return cls(
            id=int(data["id"]),
            language=str(data.get("language", "")),
            short_name=str(data.get("short_name", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "language": self.language, "shortName": self.short_name}


@dataclass
class TranscriptSegment:
    """One segment of a transcription result."""

    start: float
    end: float
    text: str
    speaker: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TranscriptSegment:
        speaker = data.get("speaker")
        return cls(
            start=float(data.get("start", 0.0)),
            end=float(data.get("end", 0.0)),
            text=str(data.get("text", "")),
            speaker=str(speaker) if speaker is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "text": self.text, "speaker": self.speaker}


def parse_segments(payload: Any) -> List[TranscriptSegment]:
    """Parse a transcription result, which is either a list or {"transcript": [...]}."""
    if isinstance(payload, Mapping):
        payload = payload.get("transcript") or payload.get("segments") or []
    return [TranscriptSegment.from_dict(s) for s in payload or []]
