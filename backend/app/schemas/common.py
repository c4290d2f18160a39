"""Shared wire types: money is a two-decimal string, never a float."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

from backend.app.services.billing import format_money

Money = Annotated[Decimal, PlainSerializer(format_money, return_type=str, when_used="json")]

MoneyInput = Annotated[Decimal, Field(max_digits=10, decimal_places=2)]

Percent = Annotated[int, Field(ge=0, le=100)]


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict | None = None


class ErrorResponse(BaseModel):
    error: ErrorBody
