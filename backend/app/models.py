from enum import Enum
from pydantic import BaseModel, Field, HttpUrl, field_validator, model_validator
from typing import Optional


class Difficulty(str, Enum):
    easy = "Easy"
    medium = "Medium"
    hard = "Hard"


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v.strip() if isinstance(v, str) else v


class SubmissionCreate(BaseModel):
    problem_name: str = Field(min_length=1, max_length=200)
    difficulty: Difficulty = Difficulty.medium
    link: Optional[HttpUrl] = None
    platform: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=2000)
    model_config = {"extra": "ignore"}

    @field_validator("problem_name")
    @classmethod
    def strip_problem_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("problem_name must not be blank")
        return v

    @field_validator("link", "platform", "description", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class SubmissionPatch(BaseModel):
    # The date is set once at creation; edits never move a submission to another day.
    problem_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    difficulty: Optional[Difficulty] = None
    link: Optional[HttpUrl] = None
    platform: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=2000)
    model_config = {"extra": "ignore"}

    @field_validator("link", "platform", "description", mode="before")
    @classmethod
    def blank_optional(cls, v):
        return _blank_to_none(v)

    @field_validator("problem_name")
    @classmethod
    def strip_problem_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("problem_name must not be blank")
        return v

    def to_updates(self) -> dict:
        updates = self.model_dump(mode="json", exclude_unset=True)
        # problem_name and difficulty are NOT NULL columns
        return {k: v for k, v in updates.items() if v is not None or k not in ("problem_name", "difficulty")}


class ProfilePatch(BaseModel):
    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    streak_goal: Optional[int] = Field(default=None, ge=1, le=3650)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def require_a_field(self):
        if self.username is None and self.streak_goal is None:
            raise ValueError("nothing to update")
        return self


class StreakOut(BaseModel):
    current_streak: int
    longest_streak: int
    updated: bool = False
