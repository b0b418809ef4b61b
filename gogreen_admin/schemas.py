from datetime import datetime, UTC
from typing import Any, ClassVar, Dict, Generic, List, Literal, Optional, Tuple, TypeVar, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import ActionType, ChangeStatus

T = TypeVar("T")

class CamelModel(BaseModel):
    """Wire models: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

class DataResponse(CamelModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None

class MessageResponse(CamelModel):
    success: bool = True
    message: str

class PartialUpdate(CamelModel):
    """
    PATCH/PUT body. Fields may be omitted, but the ones named in `not_null`
    map to NOT NULL columns and reject an explicit null.
    """
    not_null: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def required_columns_not_null(self):
        nulled = [name for name in self.not_null if name in self.model_fields_set and getattr(self, name) is None]
        if nulled:
            raise ValueError(f"{', '.join(to_camel(name) for name in nulled)} may not be null")
        return self

# Categories

class CategoryBase(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    display_order: Optional[str] = Field(default=None, max_length=10)

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(PartialUpdate):
    not_null: ClassVar[Tuple[str, ...]] = ("name", "slug", "is_active")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    display_order: Optional[str] = Field(default=None, max_length=10)
    is_active: Optional[bool] = None

class Category(CategoryBase):
    id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

# Subcategories

class SubcategoryBase(CamelModel):
    category_id: UUID
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    display_order: Optional[str] = Field(default=None, max_length=10)

class SubcategoryCreate(SubcategoryBase):
    pass

class SubcategoryUpdate(PartialUpdate):
    not_null: ClassVar[Tuple[str, ...]] = ("category_id", "name", "slug", "is_active")

    category_id: Optional[UUID] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None
    display_order: Optional[str] = Field(default=None, max_length=10)
    is_active: Optional[bool] = None

class Subcategory(SubcategoryBase):
    id: UUID
    is_active: bool
    created_at: datetime
    updated_at: datetime

# Product specification tables

class TableCell(CamelModel):
    id: str
    value: Union[bool, int, float, str]
    col_span: int = 1
    row_span: int = 1
    align: Literal["left", "center", "right"] = "center"
    is_header: Optional[bool] = None
    class_name: Optional[str] = None
    background_color: Optional[str] = None

class TableData(CamelModel):
    # Several header rows allow stacked / merged headers
    headers: List[List[TableCell]]
    rows: List[List[TableCell]]
    description: Optional[str] = None

class ImageData(CamelModel):
    image_url: str
    alt_text: Optional[str] = None
    description: Optional[str] = None

SpecificationContent = Union[TableData, ImageData]
SpecificationContentAdapter = TypeAdapter(SpecificationContent)

def check_content_type(type_: str, content) -> None:
    if type_ == "image" and not isinstance(content, ImageData):
        raise ValueError("image specifications need imageUrl content")
    if type_ != "image" and not isinstance(content, TableData):
        raise ValueError(f"{type_} specifications need headers and rows")

class SpecificationBase(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    type: Literal["grid", "matrix", "image"] = "grid"
    content: SpecificationContent
    display_order: Optional[str] = Field(default=None, max_length=10)

    @model_validator(mode="after")
    def content_matches_type(self):
        check_content_type(self.type, self.content)
        return self

class SpecificationCreate(SpecificationBase):
    product_id: UUID

class SpecificationUpdate(PartialUpdate):
    not_null: ClassVar[Tuple[str, ...]] = ("title", "type", "content", "is_active")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[Literal["grid", "matrix", "image"]] = None
    content: Optional[SpecificationContent] = None
    display_order: Optional[str] = Field(default=None, max_length=10)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def content_matches_type(self):
        if self.type and self.content is not None:
            check_content_type(self.type, self.content)
        return self

class ProductSpecification(CamelModel):
    id: UUID
    product_id: UUID
    title: str
    type: str
    content: Dict[str, Any]
    display_order: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

# Products

class ProductBase(CamelModel):
    subcategory_id: UUID
    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: Optional[str] = Field(default=None, max_length=50)
    images: Optional[List[str]] = None
    cover_image: Optional[str] = None
    pdf_url: Optional[str] = None
    specifications: Optional[Any] = None
    features: Optional[List[str]] = None
    seo_keywords: Optional[List[str]] = None
    static_page_url: Optional[str] = None
    display_order: Optional[str] = Field(default=None, max_length=10)

class ProductCreate(ProductBase):
    is_featured: Optional[bool] = None

class ProductUpdate(PartialUpdate):
    not_null: ClassVar[Tuple[str, ...]] = ("subcategory_id", "name", "slug", "is_featured")

    subcategory_id: Optional[UUID] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: Optional[str] = Field(default=None, max_length=50)
    images: Optional[List[str]] = None
    cover_image: Optional[str] = None
    pdf_url: Optional[str] = None
    specifications: Optional[Any] = None
    features: Optional[List[str]] = None
    seo_keywords: Optional[List[str]] = None
    static_page_url: Optional[str] = None
    display_order: Optional[str] = Field(default=None, max_length=10)
    is_featured: Optional[bool] = None

class Product(ProductBase):
    id: UUID
    is_active: bool
    is_featured: bool
    created_at: datetime
    updated_at: datetime

class ProductDetail(Product):
    specification_tables: List[ProductSpecification] = []

class ToggleActive(CamelModel):
    is_active: bool

class ToggleFeatured(CamelModel):
    is_featured: bool

# Blog posts

class PostCreate(CamelModel):
    title: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    content: Dict[str, Any]  # editor JSON document, stored as-is
    cover_image: Optional[str] = None
    seo_keywords: Optional[List[str]] = None
    published: Optional[bool] = None

class PostUpdate(PartialUpdate):
    not_null: ClassVar[Tuple[str, ...]] = ("title", "slug", "content")

    title: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1)
    content: Optional[Dict[str, Any]] = None
    cover_image: Optional[str] = None
    seo_keywords: Optional[List[str]] = None
    published: Optional[bool] = None

class Post(CamelModel):
    id: int
    title: str
    slug: str
    content: Dict[str, Any]
    cover_image: Optional[str] = None
    seo_keywords: Optional[List[str]] = None
    published: Optional[bool] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

# Contact form

class ContactCreate(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    country_code: str = Field(min_length=1, pattern=r"^\+?[1-9]\d{0,3}$")
    phone: str = Field(min_length=1, pattern=r"^[0-9]{7,15}$")
    message: str = Field(min_length=1)

class ContactStatusUpdate(CamelModel):
    status: Literal["new", "read", "archived"]

class ContactSubmission(CamelModel):
    id: UUID
    name: str
    email: str
    country_code: str
    phone: str
    message: str
    status: str
    created_at: datetime

# Homepage popups

def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value

class HomePopupCreate(CamelModel):
    image_url: HttpUrl
    is_active: bool = True
    link: Optional[HttpUrl] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(value)

    @model_validator(mode="after")
    def window_is_ordered(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

class HomePopup(CamelModel):
    id: UUID
    image_url: str
    link: Optional[str] = None
    is_active: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime

# YouTube videos

class YoutubeVideoCreate(CamelModel):
    youtube_url: HttpUrl
    display_order: int = 0
    is_active: bool = True

class YoutubeVideoUpdate(PartialUpdate):
    not_null: ClassVar[Tuple[str, ...]] = ("youtube_url", "display_order", "is_active")

    youtube_url: Optional[HttpUrl] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None

class YoutubeVideo(CamelModel):
    id: UUID
    youtube_url: str
    display_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    embed_url: Optional[str] = None
    video_id: Optional[str] = None

class VideoOrder(CamelModel):
    id: UUID
    display_order: int

class VideoReorder(CamelModel):
    video_orders: List[VideoOrder]

# Audit log & pending changes

class AuditLogEntry(CamelModel):
    id: UUID
    user_id: UUID
    action: ActionType
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    details: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

class AuditLogPage(CamelModel):
    success: bool = True
    data: List[AuditLogEntry]
    total: int
    page: int
    pages: int

class PendingChangeCreate(CamelModel):
    action: Literal["create", "update", "delete"]
    resource_type: str = Field(min_length=1, max_length=100)
    resource_id: Optional[str] = None
    change_data: Dict[str, Any] = {}

    @model_validator(mode="after")
    def target_is_named(self):
        if self.action != "create" and not self.resource_id:
            raise ValueError(f"{self.action} changes need a resourceId")
        return self

class PendingChangeReview(CamelModel):
    review_notes: Optional[str] = None

class PendingChange(CamelModel):
    id: UUID
    user_id: UUID
    action: ActionType
    resource_type: str
    resource_id: Optional[str] = None
    change_data: Dict[str, Any]
    previous_data: Optional[Dict[str, Any]] = None
    status: ChangeStatus
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
