"""Base model for Supabase rows."""
from typing import Any, Dict, Tuple
from datetime import datetime


class SupabaseModel:
    """
    Base model for Supabase rows.

    Wraps a row dictionary as attributes. Only the columns a query selected are
    set, so a projection never grows fields it did not ask for.
    """

    table_name: str = ""
    columns: Tuple[str, ...] = ()

    def __init__(self, **kwargs):
        """Initialize model with data."""
        for key, value in kwargs.items():
            setattr(self, key, value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SupabaseModel':
        """Create model instance from dictionary."""
        if cls.columns:
            data = {key: value for key, value in data.items() if key in cls.columns}
        return cls(**data)

    @classmethod
    def select_list(cls) -> str:
        """Column list for a PostgREST select."""
        return ", ".join(cls.columns) if cls.columns else "*"

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to dictionary."""
        return {key: value for key, value in self.__dict__.items() if not key.startswith('_')}

    def to_supabase_dict(self) -> Dict[str, Any]:
        """Convert model to Supabase-compatible dictionary."""
        data = self.to_dict()
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        return data

    def __eq__(self, other):
        return type(self) is type(other) and self.to_dict() == other.to_dict()
