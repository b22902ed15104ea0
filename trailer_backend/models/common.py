"""
Common response models.

Dependencies: pydantic
System role: Shared API response structures
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase keys for polling clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

