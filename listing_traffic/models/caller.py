"""Authenticated caller identity, passed explicitly to every data access call."""

from typing import Optional
from pydantic import BaseModel, Field


class CallerIdentity(BaseModel):
    """The user on whose behalf an operation runs."""
    user_id: str = Field(..., min_length=1, description="Supabase auth user ID")
    email: Optional[str] = None
    access_token: Optional[str] = Field(None, repr=False)
