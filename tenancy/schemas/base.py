"""
Schema Base

All request/response models speak camelCase on the wire and accept
snake_case field names from Python callers.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
