"""Split billing request and statement schemas."""

from datetime import date
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from backend.app.schemas.common import Money, Percent


class SplitBillingUpdate(BaseModel):
    split_billing_pct: Optional[Percent] = None
    split_billing_payer: Optional[str] = None
    split_billing_payer_address: Optional[str] = None
    expected_version: Optional[int] = None


class StatementHeaderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    invoice_id: int
    invoice_number: str
    issued_date: date
    due_date: date
    period_start: date
    period_end: date
    status: str
    facility_name: str
    facility_address: Optional[str] = None
    footer_lines: List[str] = Field(default_factory=list)


class StandardStatementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: Literal["standard"]
    header: StatementHeaderRead
    total: Money
    amount_paid: Money
    balance_due: Money


class SplitParentStatementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: Literal["split_parent"]
    header: StatementHeaderRead
    parent_pct: int
    invoice_total: Money
    portion_total: Money
    amount_paid: Money
    balance_due: Money


class SplitThirdPartyStatementRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: Literal["split_third_party"]
    header: StatementHeaderRead
    payer_name: str
    payer_address: Optional[str] = None
    third_party_pct: int
    invoice_total: Money
    amount_due: Money


StatementRead = Annotated[
    Union[StandardStatementRead, SplitParentStatementRead, SplitThirdPartyStatementRead],
    Field(discriminator="kind"),
]


class InvoiceStatements(BaseModel):
    invoice_id: int
    statements: List[StatementRead]
