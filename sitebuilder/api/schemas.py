"""
Pydantic schemas for API request/response models.

Field names are snake_case; the JSON keys keep the camelCase names the
web client already sends and expects (``clientSecret``, ``orderId`` ...).
"""
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from sitebuilder.integrations.registrars import AvailabilityResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

class CreatePaymentIntentRequest(BaseModel):
    """Request schema for a one-time payment."""

    amount: int = Field(..., gt=0, description="Amount in cents")
    currency: Optional[str] = Field(default=None, description="Currency code (default usd)")
    plan: Optional[str] = Field(default=None, description="Plan name stored in metadata")

    model_config = {
        "json_schema_extra": {"examples": [{"amount": 1999, "currency": "usd", "plan": "pro"}]}
    }


class ClientSecretResponse(_CamelModel):
    client_secret: str = Field(..., alias="clientSecret")


class CreateSubscriptionRequest(BaseModel):
    """Request schema for a monthly subscription price + SetupIntent."""

    price: int = Field(..., gt=0, description="Monthly price in cents")
    currency: Optional[str] = Field(default=None, description="Currency code (default usd)")
    plan: Optional[str] = Field(default=None, description="Plan (product) name")


class SubscriptionSetupResponse(_CamelModel):
    client_secret: str = Field(..., alias="clientSecret")
    price_id: str = Field(..., alias="priceId")


class CreateDomainPaymentRequest(BaseModel):
    """Request schema for buying a domain."""

    domain: Optional[str] = Field(default=None, description="Domain to purchase")
    price: Decimal = Field(..., gt=0, description="Price in major currency units")
    currency: Optional[str] = Field(default=None, description="Currency code (default usd)")

    model_config = {
        "json_schema_extra": {"examples": [{"domain": "example.com", "price": 12.99}]}
    }


class DomainPaymentResponse(_CamelModel):
    client_secret: str = Field(..., alias="clientSecret")
    order_id: str = Field(..., alias="orderId")


class CreateCustomerRequest(_CamelModel):
    email: Optional[str] = None
    user_id: Optional[Union[int, str]] = Field(default=None, alias="userId")


class CustomerResponse(_CamelModel):
    customer_id: str = Field(..., alias="customerId")


class CreateStripeSubscriptionRequest(_CamelModel):
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    price_id: Optional[str] = Field(default=None, alias="priceId")
    payment_method: Optional[str] = None


class WebhookResponse(BaseModel):
    received: bool = True


# ---------------------------------------------------------------------------
# Domains
# ---------------------------------------------------------------------------

class DomainRequest(BaseModel):
    domain: Optional[str] = None


class DomainCheckResponse(BaseModel):
    """Both registrars' answers; either may carry an error."""

    dynadot: AvailabilityResult
    namecom: AvailabilityResult


class NamecomRegisterRequest(BaseModel):
    domain: Optional[str] = None
    years: int = Field(default=1, ge=1, le=10)
    contact: Optional[Dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Auth and sites
# ---------------------------------------------------------------------------

class CredentialsRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str


class CreateSiteRequest(BaseModel):
    name: Optional[str] = None
    html: Optional[str] = None


class CreateSiteResponse(_CamelModel):
    site_id: str = Field(..., alias="siteId")
    preview_url: str = Field(..., alias="previewUrl")


class PublishSiteRequest(_CamelModel):
    site_id: Optional[Union[str, int]] = Field(default=None, alias="siteId")


class PublishSiteResponse(_CamelModel):
    public_url: str = Field(..., alias="publicUrl")


# ---------------------------------------------------------------------------
# Monitoring
# ---------------------------------------------------------------------------

class StatusResponse(BaseModel):
    status: str
    message: str


class HealthCheckResponse(BaseModel):
    """Response schema for readiness checks."""

    status: str = Field(..., description="Overall health status (healthy/unhealthy)")
    checks: Optional[Dict[str, Any]] = Field(default=None, description="Individual checks")
