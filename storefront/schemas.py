"""
Pydantic v2 schemas for request/response validation.

JSON on the wire is camelCase (the storefront SPA's convention); snake_case
is accepted on input too. Request schemas use extra="forbid" unless the
client is known to post extra keys (admin forms posting whole objects back,
the storefront checkout).
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, computed_field
from pydantic.alias_generators import to_camel

from storefront.models import (
    Category, ContactStatus, ContactSubject, CustomOrderStatus,
    OrderStatus, PaymentMethod, PaymentStatus,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class StrictRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")


class LenientRequest(CamelModel):
    model_config = ConfigDict(extra="ignore")


def _blank_to_none(value: Any) -> Any:
    # The admin form posts "" (and sometimes 0) for "no sale price"
    if value == "" or value == 0:
        return None
    return value


def _drop_blank_images(value: Any) -> Any:
    if isinstance(value, list):
        return [img for img in value if isinstance(img, str) and img.strip()]
    return value


Money = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]
SalePrice = Annotated[Optional[Decimal], BeforeValidator(_blank_to_none), Field(gt=0, max_digits=10, decimal_places=2)]
ImageList = Annotated[List[str], BeforeValidator(_drop_blank_images)]


#
# Product specifications
#

class ProductSpecifications(CamelModel):
    """
    Versioned, explicit specification schema. Unknown keys are rejected so
    ad-hoc fields cannot creep back in.
    """
    model_config = ConfigDict(extra="forbid")

    version: int = 1
    dimensions: Optional[str] = None
    material: str = ""
    weight: Optional[str] = None
    thickness: Optional[str] = None
    finish: Optional[str] = None
    mounting: Optional[str] = None
    care: Optional[str] = None
    installation: Optional[str] = None
    # Legacy fields kept for rows created by the earlier product line
    battery_life: Optional[str] = None
    unlock_methods: List[str] = Field(default_factory=list)
    compatibility: List[str] = Field(default_factory=list)


SPECIFICATION_FIELDS = [
    name for name in ProductSpecifications.model_fields if name != "version"
]


#
# Variations
#

class VariationCreate(LenientRequest):
    color: str = Field(..., min_length=1)
    size: str = Field(..., min_length=1)
    price: Money
    sale_price: SalePrice = None
    images: ImageList = Field(default_factory=list)


class VariationUpdate(StrictRequest):
    """Partial update; omitted fields keep their stored value."""
    color: Optional[str] = Field(None, min_length=1)
    size: Optional[str] = Field(None, min_length=1)
    price: Optional[Money] = None
    sale_price: SalePrice = None
    images: Optional[ImageList] = None
    is_active: Optional[bool] = None


class BulkVariationItem(LenientRequest):
    """One row of a bulk upsert; `id` present means overwrite that row."""
    id: Optional[int] = None
    color: str = Field(..., min_length=1)
    size: str = Field(..., min_length=1)
    price: Money
    sale_price: SalePrice = None
    images: ImageList = Field(default_factory=list)
    is_active: Optional[bool] = None


class BulkVariationsRequest(StrictRequest):
    variations: List[BulkVariationItem]


class VariationOut(CamelModel):
    id: int
    product_id: int
    color: str
    size: str
    price: Decimal
    sale_price: Optional[Decimal] = None
    images: List[str] = Field(default_factory=list)
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


#
# Products
#

class ProductCreate(LenientRequest):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = None
    description: str = Field(..., min_length=1)
    detailed_description: List[str] = Field(default_factory=list)
    price: Money
    images: ImageList = Field(default_factory=list)
    thumbnail: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    specifications: ProductSpecifications = Field(default_factory=ProductSpecifications)
    category: Category
    is_active: bool = True
    is_on_sale: bool = False
    sale_price: SalePrice = None
    sort_order: int = 0
    variations: List[VariationCreate] = Field(default_factory=list)


class ProductUpdate(LenientRequest):
    """
    Partial product update.

    `specifications` replaces the stored object wholesale; the individual
    specification keys (material, installation, ...) are merged into it.
    `variations`, when non-empty, replaces the product's variation set.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = None
    description: Optional[str] = None
    detailed_description: Optional[List[str]] = None
    price: Optional[Money] = None
    images: Optional[ImageList] = None
    thumbnail: Optional[str] = None
    features: Optional[List[str]] = None
    specifications: Optional[ProductSpecifications] = None
    category: Optional[Category] = None
    is_active: Optional[bool] = None
    is_on_sale: Optional[bool] = None
    sale_price: SalePrice = None
    sort_order: Optional[int] = None
    variations: Optional[List[VariationCreate]] = None

    # Mergeable specification keys
    dimensions: Optional[str] = None
    material: Optional[str] = None
    weight: Optional[str] = None
    thickness: Optional[str] = None
    finish: Optional[str] = None
    mounting: Optional[str] = None
    care: Optional[str] = None
    installation: Optional[str] = None
    battery_life: Optional[str] = None
    unlock_methods: Optional[List[str]] = None
    compatibility: Optional[List[str]] = None


class ProductOut(CamelModel):
    id: int
    name: str
    slug: str
    description: str
    detailed_description: Optional[List[str]] = None
    price: Decimal
    images: List[str] = Field(default_factory=list)
    thumbnail: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    specifications: Dict[str, Any] = Field(default_factory=dict)
    category: Category
    is_active: bool
    is_on_sale: bool
    sale_price: Optional[Decimal] = None
    sort_order: Optional[int] = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PriceQuoteOut(CamelModel):
    product_id: int
    variation_id: Optional[int] = None
    effective_price: Decimal
    effective_sale_price: Optional[Decimal] = None
    is_discounted: bool
    unit_price: Decimal
    display_images: List[str]


#
# Orders
#

class CustomerInfo(LenientRequest):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    document_number: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    comment: Optional[str] = None


class OrderItemVariation(LenientRequest):
    color: str
    size: str
    price: Decimal
    sale_price: Annotated[Optional[Decimal], BeforeValidator(_blank_to_none)] = None


class OrderItemIn(LenientRequest):
    """Cart line snapshot as captured on the client at cart time."""
    product_id: int
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0)
    name: str = Field(..., min_length=1)
    image: Optional[str] = None
    variation: Optional[OrderItemVariation] = None


class CheckoutRequest(LenientRequest):
    """Checkout body; the SPA also posts orderDate and a client-side status, both ignored."""
    customer_info: CustomerInfo
    cart_items: List[OrderItemIn] = Field(..., min_length=1)
    total: Decimal = Field(..., gt=0)
    payment_method: PaymentMethod


class OrderUpdate(StrictRequest):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None


class OrderOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    customer_info: Dict[str, Any]
    items: List[Dict[str, Any]]
    total_amount: Decimal
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="orderId")
    @property
    def order_id(self) -> str:
        return f"ORD-{self.id:06d}"


#
# Custom orders
#

class CustomOrderUpdate(StrictRequest):
    status: Optional[CustomOrderStatus] = None
    estimated_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    admin_notes: Optional[str] = None


class CustomOrderOut(CamelModel):
    id: int
    customer_name: str
    email: str
    phone: str
    design_image: str
    width: str
    height: str
    quantity: int
    additional_details: Optional[str] = None
    status: CustomOrderStatus
    estimated_price: Optional[Decimal] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


#
# Users / auth
#

class RegisterRequest(StrictRequest):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)


class LoginRequest(StrictRequest):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdate(StrictRequest):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)


class MakeAdminRequest(StrictRequest):
    email: str = Field(..., min_length=1)


class UserOut(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    is_admin: bool
    created_at: Optional[datetime] = None


#
# Contacts
#

class ContactCreate(StrictRequest):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    subject: ContactSubject
    message: str = Field(..., min_length=5, max_length=2000)


class ContactStatusUpdate(StrictRequest):
    status: ContactStatus


class ContactOut(CamelModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: ContactSubject
    message: str
    status: ContactStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="contactId")
    @property
    def contact_id(self) -> str:
        return f"CNT-{self.id:06d}"


#
# Gallery / hero slides / settings
#

class GalleryImageOut(CamelModel):
    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    image_path: str
    sort_order: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GalleryImageUpdate(StrictRequest):
    title: Optional[str] = None
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class GalleryReorderItem(StrictRequest):
    id: int
    sort_order: int


class GalleryReorderRequest(StrictRequest):
    orders: List[GalleryReorderItem]


class HeroSlideCreate(StrictRequest):
    title: str = Field(..., min_length=1, max_length=255)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    primary_button_text: Optional[str] = None
    primary_button_url: Optional[str] = None
    secondary_button_text: Optional[str] = None
    secondary_button_url: Optional[str] = None
    youtube_url: Optional[str] = None
    image_url: Optional[str] = None
    order: int = 0
    is_active: bool = True


class HeroSlideUpdate(StrictRequest):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    subtitle: Optional[str] = None
    description: Optional[str] = None
    primary_button_text: Optional[str] = None
    primary_button_url: Optional[str] = None
    secondary_button_text: Optional[str] = None
    secondary_button_url: Optional[str] = None
    youtube_url: Optional[str] = None
    image_url: Optional[str] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


class HeroSlideOut(CamelModel):
    id: int
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    primary_button_text: Optional[str] = None
    primary_button_url: Optional[str] = None
    secondary_button_text: Optional[str] = None
    secondary_button_url: Optional[str] = None
    youtube_url: Optional[str] = None
    image_url: Optional[str] = None
    order: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SettingsUpdate(StrictRequest):
    promo_enabled: Optional[bool] = None
    promo_text: Optional[str] = Field(None, max_length=255)
    promo_youtube_url: Optional[str] = None


class SettingsOut(CamelModel):
    id: int
    promo_enabled: bool
    promo_text: str
    promo_youtube_url: Optional[str] = None
    promo_youtube_title: Optional[str] = None
    promo_youtube_thumbnail: Optional[str] = None
    updated_at: Optional[datetime] = None


def dump(model: BaseModel) -> Dict[str, Any]:
    """JSON-ready camelCase dict."""
    return model.model_dump(mode="json", by_alias=True)
