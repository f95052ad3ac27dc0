from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, ClassVar, Optional, TypeVar

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, ValidationError
from pydantic_core import PydanticCustomError

from .results import ErrorKind, Failure
from .utils.shopify import normalize_shop_domain

MISSING_ERROR_TYPES = {"missing", "blank"}


def _required(value: Any) -> Any:
    if value is None:
        raise PydanticCustomError("blank", "Field required")
    # Shopify ids often arrive as JSON numbers
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and not value.strip():
        raise PydanticCustomError("blank", "Field required")
    return value


def _shop_domain(value: str) -> str:
    try:
        return normalize_shop_domain(value)
    except ValueError as exc:
        raise PydanticCustomError("shop_domain", str(exc)) from exc


RequiredStr = Annotated[str, BeforeValidator(_required)]
ShopDomain = Annotated[str, BeforeValidator(_required), AfterValidator(_shop_domain)]
CartTotal = Annotated[Decimal, BeforeValidator(_required), Field(gt=0)]


class RelayInput(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    required_message: ClassVar[str] = "Missing required fields"


class CreditCheckInput(RelayInput):
    required_message: ClassVar[str] = "Missing required fields: customer_id and purchase_order"

    customer_id: RequiredStr
    purchase_order: RequiredStr
    check_date: Optional[str] = None


class CartCreditCheckInput(RelayInput):
    required_message: ClassVar[str] = "Missing required fields: shop, customer_id, purchase_order, cart_total"

    shop: ShopDomain
    customer_id: RequiredStr
    purchase_order: RequiredStr
    cart_total: CartTotal


class DiscountRequest(RelayInput):
    required_message: ClassVar[str] = (
        "Missing required fields: shop, customer_id, purchase_order, cart_total, access_token"
    )

    shop: ShopDomain
    customer_id: RequiredStr
    purchase_order: RequiredStr
    cart_total: CartTotal
    access_token: RequiredStr


class ApplyDiscountRequest(RelayInput):
    required_message: ClassVar[str] = "Missing required fields: shop, discount_code, cart_token, access_token"

    shop: ShopDomain
    discount_code: RequiredStr
    cart_token: RequiredStr
    access_token: RequiredStr


InputT = TypeVar("InputT", bound=RelayInput)


def parse_input(model: type[InputT], payload: Any) -> InputT | Failure:
    """Validate a request body; missing fields win over malformed ones."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return Failure(ErrorKind.VALIDATION, "Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = exc.errors()
        missing = [str(e["loc"][0]) for e in errors if e["type"] in MISSING_ERROR_TYPES and e["loc"]]
        if missing:
            return Failure(ErrorKind.VALIDATION, model.required_message, {"fields": missing})
        invalid = sorted({str(e["loc"][0]) for e in errors if e["loc"]})
        return Failure(ErrorKind.VALIDATION, f"Invalid value for: {', '.join(invalid)}", {"fields": invalid})
