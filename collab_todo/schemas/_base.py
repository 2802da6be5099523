# File: collab_todo/schemas/_base.py | Version: 1.0 | Title: Pydantic Base Schema
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)
