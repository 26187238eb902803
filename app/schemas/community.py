"""
Community Schemas
=================
"""

from typing import List

from pydantic import BaseModel, Field

from app.enums import PostCategory


class CreatePostRequest(BaseModel):
    farmer_id: str = Field(..., min_length=1)
    farmer_name: str = Field(..., min_length=1, max_length=200)
    location: str = Field(default="", max_length=200)
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=10000)
    category: PostCategory
    tags: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)


class CreateCommentRequest(BaseModel):
    farmer_id: str = Field(..., min_length=1)
    farmer_name: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
