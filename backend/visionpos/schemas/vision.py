"""Vision recognition schemas."""

from pydantic import BaseModel, Field


class BoundingBox(BaseModel):
    x: float = Field(..., ge=0, le=1)
    y: float = Field(..., ge=0, le=1)
    width: float = Field(..., ge=0, le=1)
    height: float = Field(..., ge=0, le=1)


class Candidate(BaseModel):
    product_id: str
    confidence: float = Field(..., ge=0, le=1)
    bounding_box: BoundingBox


class ProcessImageRequest(BaseModel):
    image_data: str = Field(..., min_length=1)


class ThresholdRequest(BaseModel):
    threshold: float = Field(..., ge=0, le=1)
