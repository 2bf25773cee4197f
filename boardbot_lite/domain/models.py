"""Data models for the content delivery pipeline."""

from __future__ import annotations

import re
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UpdateType(str, Enum):
    """Cycle class: a full refresh or an info-row/color-column refresh."""

    MAJOR = "major"
    MINOR = "minor"


class OutputMode(str, Enum):
    """Whether generated content still needs layout or is already a grid."""

    TEXT = "text"
    LAYOUT = "layout"


class ContentPriority(IntEnum):
    """Priority class of a content source. Lower value wins."""

    NOTIFICATION = 0
    NORMAL = 2
    FALLBACK = 3


class ModelTier(str, Enum):
    """Relative cost/capability of the model a generative source wants."""

    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class SourceKind(str, Enum):
    """Generative sources are negotiated through the tool loop; programmatic ones are not."""

    GENERATIVE = "generative"
    PROGRAMMATIC = "programmatic"


class TextAlign(str, Enum):
    CENTER = "center"
    LEFT = "left"


class WeatherData(BaseModel):
    """Current conditions shown on the info row."""

    temperature: int = Field(..., description="Rounded temperature")
    unit: str = Field(default="F", description="Temperature unit letter (F or C)")
    condition: Optional[str] = Field(default=None, description="Short condition text")
    color_code: Optional[int] = Field(
        default=None, ge=63, le=70, description="Color cell shown before the temperature"
    )


class FormatOptions(BaseModel):
    """Per-source overrides for the framed content area."""

    max_lines: int = Field(default=5, ge=1, le=5)
    max_chars_per_line: int = Field(default=21, ge=1, le=21)
    text_align: TextAlign = TextAlign.CENTER
    word_wrap: bool = True


class GeneratedContent(BaseModel):
    """Output of one content source."""

    text: str = ""
    output_mode: OutputMode = OutputMode.TEXT
    layout: Optional[list[list[int]]] = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def with_metadata(self, **extra: Any) -> GeneratedContent:
        """Return a copy with ``extra`` merged into the metadata bag."""
        merged = dict(self.metadata)
        merged.update(extra)
        return self.model_copy(update={"metadata": merged})


class GenerationContext(BaseModel):
    """Immutable input to one cycle."""

    model_config = ConfigDict(frozen=True)

    update_type: UpdateType = UpdateType.MAJOR
    timestamp: datetime = Field(default_factory=datetime.now)
    event_data: Optional[dict[str, Any]] = None
    previous_content: Optional[GeneratedContent] = None
    weather: Optional[WeatherData] = None
    color_bar: Optional[list[int]] = None

    @property
    def event_identifier(self) -> Optional[str]:
        """Identifier used to match notification trigger patterns.

        ``event_type`` wins over ``entity_id``; missing or empty values give None.
        """
        if not self.event_data:
            return None
        value = self.event_data.get("event_type") or self.event_data.get("entity_id")
        return str(value) if value else None

    def with_auxiliary(
        self, weather: Optional[WeatherData], color_bar: Optional[list[int]]
    ) -> GenerationContext:
        """Return a copy carrying pre-fetched weather and palette data."""
        return self.model_copy(update={"weather": weather, "color_bar": color_bar})


class SourceRegistration(BaseModel):
    """Metadata a content source is registered with."""

    id: str = Field(..., min_length=1, description="Unique source identity")
    name: str = Field(..., description="Human-readable name")
    priority: ContentPriority = ContentPriority.NORMAL
    model_tier: ModelTier = ModelTier.LIGHT
    kind: SourceKind = SourceKind.PROGRAMMATIC
    apply_frame: bool = True
    event_trigger_pattern: Optional[str] = Field(
        default=None, description="Regular expression matched against the event identifier"
    )
    format_options: Optional[FormatOptions] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("event_trigger_pattern")
    @classmethod
    def _check_pattern(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid event trigger pattern {value!r}: {exc}") from exc
        return value

    def matches_event(self, event_identifier: Optional[str]) -> bool:
        """Return True when the trigger pattern matches the event identifier."""
        if not self.event_trigger_pattern or not event_identifier:
            return False
        return re.search(self.event_trigger_pattern, event_identifier) is not None


class ValidationResult(BaseModel):
    """Structural verdict on a piece of content."""

    valid: bool
    line_count: int = 0
    max_line_length: int = 0
    invalid_chars: list[str] = Field(default_factory=list)
    wrapping_applied: bool = False
    errors: list[str] = Field(default_factory=list)
    normalized_text: Optional[str] = None


class CycleStatus(str, Enum):
    DELIVERED = "delivered"
    BLOCKED = "blocked"
    SKIPPED = "skipped"


class CycleOutcome(BaseModel):
    """What a cycle did, returned to the scheduler."""

    status: CycleStatus
    reason: Optional[str] = None
    source_id: Optional[str] = None
    content: Optional[GeneratedContent] = None
    layout: Optional[list[list[int]]] = None
    used_fallback: bool = False
    warnings: list[str] = Field(default_factory=list)


class RecordStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class ContentRecord(BaseModel):
    """Entry handed to the persistence collaborator."""

    status: RecordStatus
    source_id: Optional[str] = None
    text: str = ""
    output_mode: OutputMode = OutputMode.TEXT
    error_message: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)
