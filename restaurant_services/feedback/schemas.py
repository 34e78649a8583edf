"""
Pydantic Schemas for Feedback Request/Response Validation
"""

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class FeedbackCreate(BaseModel):
    """Request schema for submitting feedback."""
    user_id: Optional[str] = Field(None, examples=["user123"])
    rating: Optional[int] = Field(None, examples=[5])
    comment: Optional[str] = Field(None, examples=["Excelente atendimento!"])
    order_id: Optional[Union[int, str]] = Field(None, examples=["order123"])

    def to_document(self, now: datetime) -> dict[str, Any]:
        """Build the stored document; comment and order_id get defaults."""
        return {
            "user_id": self.user_id,
            "rating": self.rating,
            "comment": self.comment or "",
            "order_id": self.order_id or None,
            "created_at": now,
            "updated_at": now,
        }


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class FeedbackResponse(BaseModel):
    """A stored feedback document; the ObjectId is rendered as `_id`."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str
    rating: int
    comment: str = ""
    order_id: Optional[Union[int, str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, v: Any) -> str:
        return str(v)


class FeedbackListResponse(BaseModel):
    success: bool = True
    feedbacks: List[FeedbackResponse]
    count: int


class FeedbackDetailResponse(BaseModel):
    success: bool = True
    feedback: FeedbackResponse


class FeedbackCreateResponse(BaseModel):
    success: bool = True
    feedback: FeedbackResponse
    message: str


class RatingBucket(BaseModel):
    """How many feedbacks carry a given rating."""
    model_config = ConfigDict(populate_by_name=True)

    rating: int = Field(alias="_id")
    count: int


class FeedbackStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    average_rating: float = Field(alias="averageRating")
    rating_distribution: List[RatingBucket] = Field(alias="ratingDistribution")


class FeedbackStatsResponse(BaseModel):
    success: bool = True
    stats: FeedbackStats


class MessageResponse(BaseModel):
    success: bool = True
    message: str
