from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum

# ==================== ENUMS ====================

class SimulationCategory(str, Enum):
    AI_MACHINE_LEARNING = "ai-machine-learning"
    CYBERSECURITY = "cybersecurity"
    CLOUD_COMPUTING = "cloud-computing"
    WEB_DEVELOPMENT = "web-development"
    DATA_SCIENCE = "data-science"
    DEVOPS = "devops"
    BLOCKCHAIN = "blockchain"
    MOBILE_DEVELOPMENT = "mobile-development"

class SimulationLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

class PricingType(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"

# ==================== SIMULATION MODELS ====================

class SimulationModule(BaseModel):
    title: str
    description: Optional[str] = None
    estimated_time: Optional[int] = None  # minutes
    resources: List[str] = []

class SimulationContent(BaseModel):
    modules: List[SimulationModule] = []
    prerequisites: List[str] = []
    learning_objectives: List[str] = []
    tools: List[str] = []

class SimulationMedia(BaseModel):
    thumbnail: Optional[str] = None
    video: Optional[str] = None
    images: List[str] = []

class Pricing(BaseModel):
    type: PricingType = PricingType.FREE
    price: float = Field(0, ge=0)

    class Config:
        use_enum_values = True

class SimulationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    category: SimulationCategory
    level: SimulationLevel
    duration: int = Field(..., ge=1, le=100)  # hours
    content: SimulationContent = Field(default_factory=SimulationContent)
    media: SimulationMedia = Field(default_factory=SimulationMedia)
    pricing: Pricing = Field(default_factory=Pricing)
    tags: List[str] = []

    class Config:
        use_enum_values = True

class SimulationUpdate(BaseModel):
    """Metrics are deliberately absent: they only change through enrollments"""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    category: Optional[SimulationCategory] = None
    level: Optional[SimulationLevel] = None
    duration: Optional[int] = Field(None, ge=1, le=100)
    content: Optional[SimulationContent] = None
    media: Optional[SimulationMedia] = None
    pricing: Optional[Pricing] = None
    tags: Optional[List[str]] = None

    class Config:
        use_enum_values = True
