from typing import Optional
from pydantic import BaseModel

class CategoryCreate(BaseModel):
    name: str = ""
    description: Optional[str] = None
    icon: Optional[str] = None
    display_order: Optional[int] = 0

class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None
