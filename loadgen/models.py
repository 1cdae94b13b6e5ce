"""Payload and metric models for the social network workload"""
import json
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


class SyntheticUser(BaseModel):
    """Identity generated for one write-path iteration, never persisted"""
    user_id: int = Field(ge=0)
    username: str = Field(min_length=1)
    first_name: str
    last_name: str
    password: str

    def to_form(self) -> dict[str, str]:
        """Form fields for /wrk2-api/user/register"""
        return {
            "user_id": str(self.user_id),
            "username": self.username,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "password": self.password,
        }


class Post(BaseModel):
    """Post body sent to /wrk2-api/post/compose"""
    user_id: int
    username: str
    post_type: int = Field(default=0, ge=0, le=2)
    text: str
    media_ids: list[int] = Field(default_factory=list)
    media_types: list[str] = Field(default_factory=list)

    def to_form(self) -> dict[str, str]:
        """Form fields; media lists travel as JSON arrays"""
        return {
            "user_id": str(self.user_id),
            "username": self.username,
            "post_type": str(self.post_type),
            "text": self.text,
            "media_ids": json.dumps(self.media_ids),
            "media_types": json.dumps(self.media_types),
        }


class FollowEdge(BaseModel):
    """Follow relationship: follower_id follows followee_id"""
    follower_id: int
    followee_id: int

    def to_form(self) -> dict[str, str]:
        return {
            "user_id": str(self.follower_id),
            "followee_id": str(self.followee_id),
        }


@dataclass(frozen=True)
class MetricSample:
    """
    Outcome of a single HTTP call.

    status_code is 0 when no response arrived (timeout or transport error).
    """
    operation_name: str
    status_code: int
    duration_ms: float
    success: bool
    timed_out: bool = False
    method: str = "GET"
    response_length: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class SeedContext:
    """Result of setup(), handed to every iteration"""
    seed_user_id: int
    seed_ready: bool
