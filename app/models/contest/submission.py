from pydantic import BaseModel, Field


class SubmissionCreate(BaseModel):
    """Schema for creating a submission"""
    contest_id: str = Field(..., alias="contestId")
    content: str = Field(..., min_length=1, description="Task answer, link or proof")

    class Config:
        populate_by_name = True
