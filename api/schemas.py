from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class FeatureRowModel(BaseModel):
    BMI: float
    Smoker: str
    HighBP: str
    HeartDiseaseorAttack: str
    PhysActivity: str
    Sex: str


class PredictionResponse(BaseModel):
    input: FeatureRowModel = Field(..., description="Encoded feature row the model was scored on")
    predicted_class: str
    prob_Diabetes: float = Field(..., ge=0.0, le=1.0)


class InfoResponse(BaseModel):
    name: str
    github_pages_url: str


class ConfusionCell(BaseModel):
    actual: str
    predicted: str
    count: int


class ConfusionResponse(BaseModel):
    labels: List[str]
    matrix: List[ConfusionCell]
    total: int
    excluded: int


class HealthResponse(BaseModel):
    status: str
    model: str
