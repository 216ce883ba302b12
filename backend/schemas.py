from datetime import datetime
from typing import List, Optional

from day_utils import parse_target_day
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ACTIVITY_NAME_MAX_LENGTH = 10


def _clean_labels(value) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("activities must be a list of strings")
    labels: List[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError("activities must be a list of strings")
        label = item.strip()
        if not label:
            raise ValueError("activity labels must not be empty")
        labels.append(label)
    return labels


class VoidEndPayload(BaseModel):
    # The five-label cap is a domain rule with its own error code, checked in
    # void_service rather than here.
    activities: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("activities", mode="before")
    @classmethod
    def validate_activities(cls, value) -> List[str]:
        return _clean_labels(value)


class SeedVoidPayload(BaseModel):
    started_at: datetime
    ended_at: datetime
    activities: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("activities", mode="before")
    @classmethod
    def validate_activities(cls, value) -> List[str]:
        return _clean_labels(value)

    @field_validator("started_at", "ended_at")
    @classmethod
    def require_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("timestamps must include a timezone offset")
        return value

    @model_validator(mode="after")
    def check_interval(self):
        if self.ended_at <= self.started_at:
            raise ValueError("ended_at must be after started_at")
        return self


class ActivityCreatePayload(BaseModel):
    name: str

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, value) -> str:
        if not isinstance(value, str):
            raise ValueError("name must be a string")
        value = value.strip()
        if not value:
            raise ValueError("Activity name must not be empty")
        if len(value) > ACTIVITY_NAME_MAX_LENGTH:
            raise ValueError(
                f"name must be at most {ACTIVITY_NAME_MAX_LENGTH} characters"
            )
        return value


class TargetDayQuery(BaseModel):
    target_day: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("target_day")
    @classmethod
    def validate_target_day(cls, value: Optional[str]) -> str:
        if not value:
            raise ValueError("target_day is required")
        if parse_target_day(value) is None:
            raise ValueError("target_day must be in YYYY-MM-DD format")
        return value
