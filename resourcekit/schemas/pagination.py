from pydantic import BaseModel, Field

class Page(BaseModel):
    limit: int = Field(default=25, ge=1)
    offset: int = Field(default=0, ge=0)
