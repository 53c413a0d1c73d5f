"""
Base models for all Multinet entities

Provides common functionality for validation and serialization of the JSON
records the server returns.
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime


class MultinetBaseModel(BaseModel):
    """Base model for all server records with common functionality."""

    model_config = {
        "validate_assignment": True,
        "use_enum_values": True,
        "populate_by_name": True,
    }

    def __repr__(self):
        fields = ', '.join(f'{k}={v}' for k, v in self.model_dump(exclude_none=True).items())
        return f"{self.__class__.__name__}({fields})"

    def to_dict(self, exclude_none: bool = True) -> Dict[str, Any]:
        """Convert model to a JSON-ready dictionary using server field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)

    @classmethod
    def from_api_data(cls, data: Dict[str, Any]):
        """Create model instance from API response data."""
        if not data:
            raise ValueError(f"Cannot create {cls.__name__} from empty data")
        return cls.model_validate(data)


class MultinetResource(MultinetBaseModel):
    """A server-side database resource with an id and timestamps."""

    id: Optional[int] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
