from pydantic import BaseModel
from typing import Optional

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class ActionOkOut(BaseModel):
    ok: bool = True
    message: Optional[str] = None
