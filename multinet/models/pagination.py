"""
Paginated response envelope

List endpoints answer with {count, next, previous, results}.
"""
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar('T')


class Paginated(BaseModel, Generic[T]):
    """One page of a list endpoint."""

    count: int = 0
    next: Optional[str] = Field(None, description="URL of the next page")
    previous: Optional[str] = Field(None, description="URL of the previous page")
    results: List[T] = Field(default_factory=list)

    @property
    def has_next(self) -> bool:
        """Check if there are more results after this page."""
        return self.next is not None

    @property
    def has_previous(self) -> bool:
        """Check if there are results before this page."""
        return self.previous is not None
