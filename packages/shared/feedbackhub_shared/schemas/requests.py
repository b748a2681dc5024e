from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID
from datetime import datetime
from .common import RequestCategory, RequestSort, RequestStatus


class RequestCreate(BaseModel):
    title: str = Field(min_length=5, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    category: RequestCategory = RequestCategory.FEATURE


class RequestStatusUpdate(BaseModel):
    status: RequestStatus


class RequestListQuery(BaseModel):
    status: Optional[RequestStatus] = None
    category: Optional[RequestCategory] = None
    sort: RequestSort = RequestSort.VOTES
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class RequestRead(BaseModel):
    id: UUID
    board_id: UUID
    title: str
    description: Optional[str] = None
    category: RequestCategory
    status: RequestStatus
    votes_count: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class RequestList(BaseModel):
    requests: List[RequestRead]
    total: int
    limit: int
    offset: int


class MergeRequest(BaseModel):
    target_request_id: UUID


class VoteCreate(BaseModel):
    """Anonymous voters may identify themselves by email."""
    email: Optional[EmailStr] = None


class VoteResult(BaseModel):
    voted: bool
    votes: int
