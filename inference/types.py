from dataclasses import dataclass, field
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a friendly, concise, and helpful financial assistant named 'Wisbee'. "
    "Provide short, actionable advice or information based on financial markets, "
    "avoiding overly complex jargon. Always answer concisely."
)

OutcomeStatus = Literal["success", "failure", "cancelled"]
ErrorKind = Literal["exhausted", "non_retryable", "invalid_request"]
FailureReason = Literal["network_error", "malformed_response", "rate_limited", "http_error"]


class CompletionRequest(BaseModel):
    """One prompt for the text endpoint. Frozen once built."""

    model_config = ConfigDict(frozen=True)

    prompt_text: str = Field(..., description="User-facing prompt (non-empty)")
    system_instruction: str = Field(default=DEFAULT_SYSTEM_INSTRUCTION)
    grounding_enabled: bool = True

    @field_validator("prompt_text")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("prompt_text must not be empty")
        return v

    @field_validator("system_instruction", mode="before")
    @classmethod
    def default_instruction(cls, v: Optional[str]) -> str:
        if v is None or not str(v).strip():
            return DEFAULT_SYSTEM_INSTRUCTION
        return v


class Citation(BaseModel):
    """A grounding source: both fields are required."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)


class CompletionResult(BaseModel):
    text: str
    citations: List[Citation] = Field(default_factory=list)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt cap and backoff base, fixed per client."""

    max_attempts: int = 5
    base_delay_ms: int = 1000

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")

    def delay_for(self, attempt_index: int) -> float:
        """Backoff in seconds before the attempt after ``attempt_index``."""
        return (2 ** attempt_index) * self.base_delay_ms / 1000.0


@dataclass
class CompletionOutcome:
    status: OutcomeStatus
    result: Optional[CompletionResult] = None
    message: Optional[str] = None          # generic user-facing failure string
    error_kind: Optional[ErrorKind] = None
    last_failure: Optional[FailureReason] = None
    attempts: int = 0
    metadata: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "success"


def failure_message(attempts: int) -> str:
    return f"Error: Could not get a response after {attempts} attempts."
