# eproc_portal/models/common.py

from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a listing, with the total number of matching rows."""
    items: List[T]
    total: int
    limit: int
    offset: int
