from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class CardPaymentRequest(BaseModel):
    cardNumber: str
    expiryDate: str = Field(..., description="MM/YY")
    cvv: str
    amount: float = Field(..., description="Amount in minor units (cents)")


class CardPaymentResponse(BaseModel):
    transactionId: str
    status: str
    amount: float
    last4: str


class PaymentClient(BaseModel):
    name: str = ""
    lastName: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    countryId: int = 1
    termsAndConditions: Optional[str] = None


class PaymentLinkRequest(BaseModel):
    reference: str
    concept: str
    amount: float
    currency: Optional[str] = None
    description: str = ""
    urlSuccess: Optional[str] = None
    urlFailed: Optional[str] = None
    urlNotification: Optional[str] = None
    client: Optional[PaymentClient] = None
    favorite: bool = False


class ErrorResponse(BaseModel):
    error: str


class OrderSummary(BaseModel):
    package: Dict[str, Any] = Field(default_factory=dict)
    selectedMeals: Optional[List[Any]] = Field(
        default=None, description="Nested {meal: {...}} or flat meal records"
    )
    deliveryAddress: Dict[str, Any] = Field(default_factory=dict)
    personalNote: Optional[str] = None


class CheckoutRequest(BaseModel):
    method: Optional[str] = Field(default=None, description="card or tropipay")
    summary: Optional[OrderSummary] = None
    payment: Dict[str, Any] = Field(
        default_factory=dict, description="Card fields for card payments"
    )


class CheckoutResponse(BaseModel):
    success: bool
    method: str
    order_id: str
    reference: Optional[str] = None
    short_url: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class SignUpRequest(BaseModel):
    email: str
    password: str
    name: Optional[str] = None
    phone: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpResponse(BaseModel):
    user: Optional[Dict[str, Any]]
    needs_email_verification: bool


class SignInResponse(BaseModel):
    user: Optional[Dict[str, Any]]
    session: Optional[Dict[str, Any]]


class OAuthUrlResponse(BaseModel):
    url: str


class StaffStatusResponse(BaseModel):
    is_admin: bool


class AvatarRequest(BaseModel):
    first_name: str


class AvatarResponse(BaseModel):
    avatar_url: str


class OrderResponse(BaseModel):
    id: str
    user_id: str
    package_id: Optional[Any] = None
    meals: List[Dict[str, Any]] = []
    payment_method: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    status: str = "pending"
    reference: Optional[str] = None
    short_url: Optional[str] = None
    error_message: Optional[str] = None
    total: Optional[float] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
