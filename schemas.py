"""
Database Schemas for the Practice Tracker

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercase of the class name (e.g., UserStats -> "userstats"). Field names are
camelCase on the wire and in the database, snake_case in Python.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt
from pydantic.alias_generators import to_camel

Difficulty = Literal["easy", "medium", "hard"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Example(CamelModel):
    input: Optional[str] = None
    output: Optional[str] = None
    explanation: Optional[str] = None


class Problem(CamelModel):
    title: Optional[str] = Field(None, description="Short title for the problem")
    description: Optional[str] = Field(None, description="Detailed problem statement")
    difficulty: Difficulty = Field("easy", description="Difficulty: easy, medium, hard")
    category: Optional[str] = Field(None, description="Topic, e.g. arrays, graphs, dp")
    examples: List[Example] = Field(default_factory=list)
    constraints: Optional[str] = None
    solution: Optional[str] = Field(None, description="Reference solution text/markdown")
    link: Optional[str] = Field(None, description="External URL of the problem")
    is_solved: bool = False


class UserStats(CamelModel):
    total_solved: NonNegativeInt = 0
    easy: NonNegativeInt = 0
    medium: NonNegativeInt = 0
    hard: NonNegativeInt = 0
    streak: NonNegativeInt = 0
    last_practiced: Optional[datetime] = None


# -----------------------------
# Request Models
# -----------------------------

# Partial updates: an unset field is left alone. difficulty, examples and isSolved are
# not Optional, so an explicit null is rejected rather than stored.

class ProblemUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    difficulty: Difficulty = None
    category: Optional[str] = None
    examples: List[Example] = None
    constraints: Optional[str] = None
    solution: Optional[str] = None
    link: Optional[str] = None
    is_solved: bool = None

    def changes(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True, exclude={"admin_password"})


class ProblemDetailsUpdate(ProblemUpdate):
    admin_password: Optional[str] = None


class AdminCredentials(CamelModel):
    admin_password: Optional[str] = None


class UserStatsUpdate(CamelModel):
    total_solved: NonNegativeInt = None
    easy: NonNegativeInt = None
    medium: NonNegativeInt = None
    hard: NonNegativeInt = None
    streak: NonNegativeInt = None
    last_practiced: Optional[datetime] = None

    def changes(self) -> dict:
        return self.model_dump(by_alias=True, exclude_unset=True)


# -----------------------------
# Response Models
# -----------------------------

class ProblemOut(Problem):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserStatsOut(UserStats):
    id: str


class SuccessResponse(BaseModel):
    success: bool = True


class CreateProblemResponse(SuccessResponse):
    id: Optional[str]


class InitializeDbResponse(CamelModel):
    success: bool = True
    message: str
    is_empty: bool
