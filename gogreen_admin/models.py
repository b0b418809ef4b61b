import enum
import uuid
from datetime import datetime, UTC

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text, Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    # Columns are "timestamp without time zone", stored as naive UTC.
    return datetime.now(UTC).replace(tzinfo=None)


JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EDITOR = "editor"


class ChangeStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ActionType(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    APPROVE = "approve"
    REJECT = "reject"


def _enum(enum_cls, name):
    return Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)  # hash, managed by the login service
    role = Column(_enum(UserRole, "user_role"), nullable=False, default=UserRole.EDITOR)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    image = Column(String(500))
    display_order = Column(String(10))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    subcategories = relationship(
        "Subcategory", back_populates="category", cascade="all, delete-orphan", passive_deletes=True
    )


class Subcategory(Base):
    __tablename__ = "subcategories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    image = Column(String(500))
    display_order = Column(String(10))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    category = relationship("Category", back_populates="subcategories")
    products = relationship(
        "Product", back_populates="subcategory", cascade="all, delete-orphan", passive_deletes=True
    )


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    subcategory_id = Column(Uuid, ForeignKey("subcategories.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, nullable=False)
    description = Column(Text)
    short_description = Column(Text)
    price = Column(String(50))
    images = Column(JSON)
    cover_image = Column(String(500))
    pdf_url = Column(String(500))
    specifications = Column(JSON)
    features = Column(JSON)
    seo_keywords = Column(JSON)
    # Link to the pre-existing static product page on the storefront
    static_page_url = Column(String(500))
    display_order = Column(String(10))
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    subcategory = relationship("Subcategory", back_populates="products")
    specification_tables = relationship(
        "ProductSpecification",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductSpecification.display_order",
    )


class ProductSpecification(Base):
    __tablename__ = "product_specifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    # grid = standard table, matrix = merged headers, image = specification image
    type = Column(String(50), nullable=False, default="grid")
    content = Column(JSONDocument, nullable=False)
    display_order = Column(String(10))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    product = relationship("Product", back_populates="specification_tables")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(_enum(ActionType, "action_type"), nullable=False)
    resource_type = Column(String(100))
    resource_id = Column(String(255))
    details = Column(JSON)
    ip_address = Column(String(45))
    user_agent = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)


class PendingChange(Base):
    __tablename__ = "pending_changes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(_enum(ActionType, "action_type"), nullable=False)
    resource_type = Column(String(100), nullable=False)
    resource_id = Column(String(255))
    change_data = Column(JSON, nullable=False)
    previous_data = Column(JSON)
    status = Column(_enum(ChangeStatus, "change_status"), nullable=False, default=ChangeStatus.PENDING)
    reviewed_by = Column(Uuid, ForeignKey("users.id"))
    reviewed_at = Column(DateTime)
    review_notes = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    slug = Column(Text, unique=True, nullable=False)
    content = Column(JSONDocument, nullable=False)  # rich-text editor document
    cover_image = Column(String(500))
    seo_keywords = Column(JSON)
    published = Column(Boolean, default=False)
    published_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)


class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    country_code = Column(String(10), nullable=False)
    phone = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="new")  # new, read, archived
    created_at = Column(DateTime, default=utcnow, nullable=False)


class YoutubeVideo(Base):
    __tablename__ = "youtube_videos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    youtube_url = Column(String(500), nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)


class HomePopup(Base):
    __tablename__ = "home_popups"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    image_url = Column(Text, nullable=False)
    link = Column(String(500))
    is_active = Column(Boolean, nullable=False, default=True)
    start_date = Column(DateTime)
    end_date = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
