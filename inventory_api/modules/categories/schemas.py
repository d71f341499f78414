# inventory_api/modules/categories/schemas.py
from pydantic import BaseModel, Field, validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime
from inventory_api.shared.database.models import MAX_INT
from inventory_api.shared.schemas.common import BaseResponse, CategoryRef

class CategoryCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    parent_id: Optional[int] = Field(None, gt=0, le=MAX_INT)

    @validator('name')
    def strip_name(cls, v):
        if not v.strip():
            raise ValueError('El nombre no puede estar vacío')
        return v.strip()

class CategoryUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)
    parent_id: Optional[int] = Field(None, gt=0, le=MAX_INT, description="null para convertirla en raíz")
    is_active: Optional[bool] = None

class ChildRef(CategoryRef):
    is_active: bool = True

class CategoryProduct(BaseModel):
    id: int
    code: str
    title: str
    quantity: int
    sale_price: Decimal

    class Config:
        from_attributes = True

class CategoryItem(BaseModel):
    """Fila del listado plano"""
    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    parent: Optional[CategoryRef] = None
    is_active: bool
    product_count: int = 0
    children_count: int = 0
    created_at: Optional[datetime] = None

class CategoryNode(BaseModel):
    """Nodo del listado jerárquico"""
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    product_count: int = 0
    children: List["CategoryNode"] = []

class CategoryDetail(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    parent: Optional[CategoryRef] = None
    children: List[ChildRef] = []
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CategoryWithProducts(CategoryDetail):
    products: List[CategoryProduct] = []

class CategoryResponse(BaseResponse):
    category: CategoryDetail

class CategoryListResponse(BaseModel):
    categories: List[CategoryItem]

class CategoryTreeResponse(BaseModel):
    categories: List[CategoryNode]

class CategoryDeleteResponse(BaseResponse):
    deactivated: bool

CategoryNode.model_rebuild()
