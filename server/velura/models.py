import json
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from velura.utils.config import PROMPT_MAX_LENGTH, PROMPT_MIN_LENGTH


class GenerateCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., min_length=PROMPT_MIN_LENGTH, max_length=PROMPT_MAX_LENGTH)
    current_files: Optional[Dict[str, str]] = Field(None, alias="currentFiles")


class GenerateCodeResponse(BaseModel):
    files: Dict[str, str]
    timestamp: int


class SandboxRequest(BaseModel):
    files: Dict[str, str]


class SandboxResponse(BaseModel):
    files: Dict[str, str]


class EventType(str, Enum):
    STATUS = "status"
    FILES_DETECTED = "files_detected"
    COMPLETE = "complete"
    ERROR = "error"


class ProgressStep(str, Enum):
    STARTED = "started"
    ANALYZING = "analyzing"
    PREPARING = "preparing"
    CONNECTING = "connecting"
    MODEL_CALL_IN_FLIGHT = "model_call_in_flight"
    EXTRACTING = "extracting"
    FILES_DETECTED = "files_detected"
    VALIDATING = "validating"
    OPTIMIZING = "optimizing"
    COMPLETE = "complete"
    ERROR = "error"


class CompletionSummary(BaseModel):
    totalFiles: int
    fileNames: List[str]
    isUpdate: bool


class StatusEvent(BaseModel):
    """
    One entry of the progress stream. `step` is the machine-readable progress code;
    `message` is for humans only.
    """
    type: EventType
    step: ProgressStep
    message: Optional[str] = None
    emoji: Optional[str] = None
    files: Optional[Union[Dict[str, str], List[str]]] = None
    summary: Optional[CompletionSummary] = None
    timestamp: Optional[int] = None
    error: Optional[str] = None
    code: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.type in (EventType.COMPLETE, EventType.ERROR)

    def to_line(self) -> str:
        payload = self.model_dump(mode="json", exclude_none=True)
        return json.dumps(payload, ensure_ascii=False) + "\n"
