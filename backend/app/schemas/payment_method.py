"""Payment method catalogue schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class PaymentMethodCreate(BaseModel):
    name: str
    code: Optional[str] = None
    is_active: bool = True


class PaymentMethodUpdate(BaseModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None


class PaymentMethodRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    name: str
    is_active: bool
