"""Entity base for domain models."""

from pydantic import BaseModel, ConfigDict


class Entity(BaseModel):
    """Identity-bearing domain object backed by pydantic validation."""

    model_config = ConfigDict(validate_assignment=True)
