"""Widget snapshot models (the JSON contract with the native renderer)."""

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

SNAPSHOT_VERSION = 2
SNAPSHOT_KEY = "widget_snapshot"

# The renderer stops trusting snapshots older than this
SNAPSHOT_STALE_AFTER = timedelta(minutes=30)

# Defaults for fields that older schema versions did not write
V1_DEFAULTS = {
    "cta": "Let's go",
    "backgroundStatus": "default",
    "backgroundTimeBand": "day",
    "backgroundVariant": 1,
}


def to_epoch_seconds(dt: datetime) -> int:
    return int(dt.timestamp())


def to_epoch_ms(dt: datetime) -> int:
    return int(dt.timestamp() * 1000)


class MascotEmotion(str, Enum):
    HAPPY = "happy"
    NEUTRAL = "neutral"
    WORRIED = "worried"
    SAD = "sad"
    CELEBRATE = "celebrate"


@dataclass(frozen=True)
class Derived:
    """Mascot emotion follows urgency."""
    frame_index: int = 0


@dataclass(frozen=True)
class Celebrating:
    """Celebration override that holds until ``expires_at_ms``."""
    expires_at_ms: int


MascotMode = Union[Derived, Celebrating]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MascotState(_CamelModel):
    """Mascot emotion plus its animation frame."""

    emotion: MascotEmotion = MascotEmotion.NEUTRAL
    frame_index: int = Field(0, alias="frameIndex")
    expires_at: Optional[int] = Field(None, alias="expiresAt")  # epoch ms

    @model_validator(mode="before")
    @classmethod
    def _upgrade_expires_at(cls, data: Any) -> Any:
        # v1 wrote expiresAt as an ISO-8601 string
        if isinstance(data, dict) and isinstance(data.get("expiresAt"), str):
            data = dict(data)
            data["expiresAt"] = to_epoch_ms(datetime.fromisoformat(data["expiresAt"]))
        return data

    def mode(self) -> MascotMode:
        """Tagged view of this state for the mascot state machine."""
        if self.emotion == MascotEmotion.CELEBRATE and self.expires_at is not None:
            return Celebrating(expires_at_ms=self.expires_at)
        return Derived(frame_index=self.frame_index)

    def is_celebrating(self, now: datetime) -> bool:
        return (
            self.emotion == MascotEmotion.CELEBRATE
            and self.expires_at is not None
            and to_epoch_ms(now) < self.expires_at
        )


class TopGoal(_CamelModel):
    """The goal the widget puts front and centre."""

    id: str
    title: str
    progress: float = Field(ge=0.0, le=1.0)
    goal_type: str = Field(alias="goalType")  # "daily" | "longTerm"
    progress_type: str = Field(alias="progressType")
    next_due_epoch: Optional[int] = Field(None, alias="nextDueEpoch")
    urgency: float = Field(ge=0.0, le=1.0)
    progress_label: Optional[str] = Field(None, alias="progressLabel")


class WidgetSnapshot(_CamelModel):
    """Everything the native renderer needs to paint the widget."""

    version: int = SNAPSHOT_VERSION
    generated_at: int = Field(alias="generatedAt")  # unix seconds
    top_goal: Optional[TopGoal] = Field(None, alias="topGoal")
    mascot: MascotState = Field(default_factory=MascotState)
    cta: str
    background_status: str = Field(alias="backgroundStatus")
    background_time_band: str = Field(alias="backgroundTimeBand")
    background_variant: int = Field(alias="backgroundVariant")

    @model_validator(mode="before")
    @classmethod
    def _apply_version_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        version = data.get("version", 1)
        if isinstance(version, bool) or not isinstance(version, int):
            raise ValueError(f"Snapshot version must be an integer, got {version!r}")
        if version < SNAPSHOT_VERSION:
            data = dict(data)
            names = {f.alias: name for name, f in cls.model_fields.items() if f.alias}
            for key, default in V1_DEFAULTS.items():
                # Fields may arrive under their alias or their Python name
                if data.get(key) is None and data.get(names.get(key, key)) is None:
                    data[key] = default
        return data

    def to_json(self) -> str:
        """Serialize with the camelCase keys the renderer reads."""
        return json.dumps(self.model_dump(mode="json", by_alias=True))

    @classmethod
    def from_json(cls, text: str) -> "WidgetSnapshot":
        """
        Parse a stored snapshot.

        Raises:
            ValueError: if the text is not valid JSON or fails validation
        """
        return cls.model_validate(json.loads(text))

    def age(self, now: datetime) -> timedelta:
        return timedelta(seconds=to_epoch_seconds(now) - self.generated_at)

    def is_stale(self, now: datetime, threshold: timedelta = SNAPSHOT_STALE_AFTER) -> bool:
        return self.age(now) > threshold


class GoalEventRequest(_CamelModel):
    """Body of POST /api/events (change notification from the goal store)."""

    kind: str
    goal_id: Optional[str] = Field(None, alias="goalId")
    is_celebration: bool = Field(False, alias="isCelebration")


class RefreshRequest(_CamelModel):
    """Body of POST /api/refresh."""

    is_celebration: bool = Field(False, alias="isCelebration")
