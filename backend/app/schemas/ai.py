from typing import List

from pydantic import BaseModel, Field


class TaskGenerationRequest(BaseModel):
    prompt: str = Field(..., description="Free-form description of the work to plan")


class GeneratedTaskRead(BaseModel):
    title: str
    description: str = ""
    due_date: str = Field("", description="YYYY-MM-DD, or empty when the model gave no usable date")

    class Config:
        from_attributes = True


class TaskGenerationResponse(BaseModel):
    tasks: List[GeneratedTaskRead]
