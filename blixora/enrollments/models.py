from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum

# ==================== ENUMS ====================

class EnrollmentStatus(str, Enum):
    ENROLLED = "enrolled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    DROPPED = "dropped"

# ==================== DATABASE MODELS ====================

class Assessment(BaseModel):
    module_id: str
    score: float
    max_score: float = 100
    completed_at: datetime = Field(default_factory=datetime.utcnow)
    time_spent: float = 0  # minutes

class Progress(BaseModel):
    completed_modules: List[str] = []
    current_module: Optional[str] = None
    percentage_complete: int = 0
    time_spent: float = 0  # minutes
    last_accessed: Optional[datetime] = None

class Performance(BaseModel):
    score: Optional[int] = None  # mean of assessment scores
    assessments: List[Assessment] = []

class Feedback(BaseModel):
    rating: Optional[int] = None
    review: Optional[str] = None
    would_recommend: Optional[bool] = None
    review_date: Optional[datetime] = None

class Enrollment(BaseModel):
    enrollment_id: str  # ENR_XXXXXX
    user_id: str
    simulation_id: str
    status: EnrollmentStatus = EnrollmentStatus.ENROLLED
    progress: Progress = Field(default_factory=Progress)
    performance: Performance = Field(default_factory=Performance)
    feedback: Feedback = Field(default_factory=Feedback)
    enrolled_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 0  # bumped on every write-back

    class Config:
        use_enum_values = True

# ==================== REQUEST MODELS ====================

class EnrollmentCreate(BaseModel):
    simulation_id: str = Field(..., min_length=1)

class ProgressUpdate(BaseModel):
    module_id: str = Field(..., min_length=1)
    is_completed: bool = True
    time_spent: Optional[float] = Field(None, ge=0)
    score: Optional[float] = Field(None, ge=0, le=100)

class FeedbackCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    review: Optional[str] = Field(None, max_length=2000)
    would_recommend: Optional[bool] = None
