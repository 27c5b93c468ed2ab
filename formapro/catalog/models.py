# module formapro.catalog.models
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class FormationLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class FormationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Formation(BaseModel):
    """Formation telle que stockée dans la table 'formations'."""
    id: str
    title: str
    category: str = ""
    description: str = ""
    description_long: str = ""
    price: int = Field(ge=0)
    image_url: str = ""
    duration: str = ""
    level: FormationLevel = FormationLevel.BEGINNER
    fichier_path: Optional[str] = None
    syllabus: List[str] = Field(default_factory=list)
    status: FormationStatus = FormationStatus.ACTIVE
    sales_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == FormationStatus.ACTIVE


class FormationCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    category: str = ""
    description: str = ""
    description_long: str = ""
    price: int = Field(gt=0)
    image_url: str = ""
    duration: str = ""
    level: FormationLevel = FormationLevel.BEGINNER
    fichier_path: Optional[str] = None
    syllabus: List[str] = Field(default_factory=list)
    status: FormationStatus = FormationStatus.ACTIVE


class FormationUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = None
    description: Optional[str] = None
    description_long: Optional[str] = None
    price: Optional[int] = Field(default=None, gt=0)
    image_url: Optional[str] = None
    duration: Optional[str] = None
    level: Optional[FormationLevel] = None
    fichier_path: Optional[str] = None
    syllabus: Optional[List[str]] = None
    status: Optional[FormationStatus] = None
