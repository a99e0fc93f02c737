"""Pydantic schemas for the AI helper endpoints."""

from typing import Literal

from pydantic import BaseModel, Field


class DailyQuoteResponse(BaseModel):
    quote: str
    cached: bool = False


class GenerateDescriptionRequest(BaseModel):
    context: str = Field(..., max_length=4000)
    project_name: str | None = Field(None, max_length=255)
    type: Literal["invoice", "quote"] = "invoice"


class GenerateDescriptionResponse(BaseModel):
    description: str
