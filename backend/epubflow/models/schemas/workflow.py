"""Workflow configuration and status schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from epubflow.models.enums import LogLevel, WorkflowStatus


# Languages offered by the configuration surface
LANGUAGES: list[str] = [
    "Chinese (Simplified)",
    "Chinese (Traditional)",
    "English",
    "Japanese",
    "Korean",
    "French",
    "German",
    "Spanish",
    "Russian",
    "Italian",
    "Portuguese",
]

DEFAULT_SYSTEM_INSTRUCTION = """You are an expert literary translator. Your task is to rewrite the original text into the target language.

Guidelines:
1. Input: Text derived from an EPUB file.
2. Output: Standard Markdown format.
3. Character Names: Keep novel character names in their original language. Do NOT translate them.
4. Fidelity: Maintain the original tone, style, and logic of the story."""

DEFAULT_PROOFREAD_INSTRUCTION = (
    "Check for mixed languages (e.g., untranslated sentences) and fix them. "
    "Ensure smooth flow. Return the corrected markdown only."
)


class WorkflowConfig(BaseModel):
    """User-facing workflow settings.

    Frozen: one run always sees the same values.
    """

    model_config = ConfigDict(frozen=True)

    target_language: str = "Chinese (Simplified)"
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    proofread_instruction: str = DEFAULT_PROOFREAD_INSTRUCTION
    enable_proofreading: bool = True
    use_recommended_prompts: bool = False
    smart_skip: bool = True  # Remove front matter, keep references untranslated

    @field_validator("target_language")
    @classmethod
    def validate_language(cls, value: str) -> str:
        if value not in LANGUAGES:
            raise ValueError(f"Unsupported target language: {value}")
        return value


class LogEntry(BaseModel):
    """A single line of the workflow console."""

    timestamp: float
    message: str
    level: LogLevel = LogLevel.INFO


class UnitSummary(BaseModel):
    """Per-unit view for status display."""

    id: str
    file_name: str
    title: str
    is_skippable: bool
    is_reference: bool
    translated: bool
    proofread: bool


class WorkflowStatusResponse(BaseModel):
    """Snapshot of the workflow returned by the status endpoint."""

    file_name: Optional[str] = None
    status: WorkflowStatus
    progress: float = Field(ge=0, le=100)
    error_message: Optional[str] = None
    output_ready: bool = False
    running: bool = False
    units: list[UnitSummary] = Field(default_factory=list)
    asset_count: int = 0
    cover_path: Optional[str] = None
    logs: list[LogEntry] = Field(default_factory=list)
