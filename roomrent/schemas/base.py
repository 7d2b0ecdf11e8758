"""Base schemas shared by request and response models."""
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema; reads attributes off model objects."""
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
