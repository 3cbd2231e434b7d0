# File: /inline_db/schemas/_base.py | Version: 2.0 | Title: Pydantic Base Schema (V2)
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)
