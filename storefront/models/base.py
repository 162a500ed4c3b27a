# storefront/models/base.py
from pydantic import BaseModel, ConfigDict

class FrozenModel(BaseModel):
    """Immutable value object, validated at construction"""
    model_config = ConfigDict(frozen=True, from_attributes=True)
