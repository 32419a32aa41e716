from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes to camelCase JSON while accepting snake_case input too."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
