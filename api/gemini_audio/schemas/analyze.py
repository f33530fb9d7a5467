from typing import Literal

from pydantic import BaseModel, Field


class AnalyzeSuccess(BaseModel):
    success: Literal[True] = True
    model: str = Field(..., description="Gemini model that produced the text")
    result: str = Field(..., description="Timestamped transcript returned by the model")


class AnalyzeFailure(BaseModel):
    success: Literal[False] = False
    error: str
    detail: str = Field(..., description="Error message reported by the Gemini API")


class ValidationFailure(BaseModel):
    error: str
