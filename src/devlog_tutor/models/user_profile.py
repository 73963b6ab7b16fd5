"""User profile captured during onboarding."""

from enum import StrEnum

from pydantic import BaseModel


class DeveloperRole(StrEnum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"
    MOBILE = "mobile"
    OTHER = "other"


class ExperienceLevel(StrEnum):
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"


class UserProfile(BaseModel):
    name: str
    role: DeveloperRole
    level: ExperienceLevel
    goal: str = ""
