"""Pydantic models for Gregori API response bodies."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

T = TypeVar("T")


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ResponseEnvelope(ApiModel, Generic[T]):
    status: Literal["SUCCESS", "FAIL", "ERROR"]
    message: str
    timestamp: datetime
    data: T | None = None


class Member(ApiModel):
    id: int
    email: str
    name: str
    authority: str
    is_deleted: bool = Field(False, alias="isDeleted")


class SignInData(ApiModel):
    member: Member


class Category(ApiModel):
    id: int
    name: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class OrderDetail(ApiModel):
    product_id: int = Field(alias="productId")
    product_count: int = Field(alias="productCount")
    status: str


class Order(ApiModel):
    id: int
    member_id: int = Field(alias="memberId")
    payment_method: str = Field(alias="paymentMethod")
    payment_amount: int = Field(alias="paymentAmount")
    delivery_cost: int = Field(alias="deliveryCost")
    status: str
    order_details: list[OrderDetail] = Field(alias="orderDetails")


class ErrorBody(ApiModel):
    status: str
    message: str


SignInResponse = ResponseEnvelope[SignInData]


def member_id_from_signin(body: Any) -> int | None:
    """Return ``data.member.id`` of a sign-in body, or None if it is not one."""
    try:
        envelope = SignInResponse.model_validate(body)
    except ValidationError:
        return None
    return envelope.data.member.id if envelope.data else None
