"""Pydantic v2 schemas for API request/response models.

Money, quantities and rates are returned as strings so no precision is lost
in JSON.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def as_utc(value: datetime) -> datetime:
    """Treat a timestamp without a timezone as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


# Request timestamps; stored documents only ever hold aware datetimes.
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class HealthResponse(BaseModel):
    status: str
    version: str


# Line item / payment / time entry schemas
class LineItemCreate(BaseModel):
    """Schema for a line item on create or add.

    ``amount`` is always derived from quantity and rate and is not accepted.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(..., min_length=1)
    quantity: Decimal = Decimal("1")
    rate: Decimal
    type: str = Field(
        default="material",
        pattern=r"^(material|labor|equipment|subcontractor|permit)$",
    )
    taxable: bool | None = None
    order: int | None = None
    part_number: str | None = None
    material_source: str | None = None
    labor_type: str | None = None
    subcontractor_name: str | None = None


class LineItemUpdate(BaseModel):
    description: str | None = None
    quantity: Decimal | None = None
    rate: Decimal | None = None
    type: str | None = Field(
        default=None,
        pattern=r"^(material|labor|equipment|subcontractor|permit)$",
    )
    taxable: bool | None = None
    part_number: str | None = None
    material_source: str | None = None
    labor_type: str | None = None
    subcontractor_name: str | None = None


class LineItemResponse(BaseModel):
    id: UUID
    description: str
    quantity: str
    rate: str
    amount: str
    type: str
    taxable: bool
    order: int
    part_number: str | None = None
    material_source: str | None = None
    labor_type: str | None = None
    subcontractor_name: str | None = None


class PaymentCreate(BaseModel):
    amount: Decimal
    date: UtcDatetime | None = None
    method: str = Field(
        default="other",
        pattern=r"^(cash|check|credit_card|debit_card|ach|wire|other)$",
    )
    reference: str | None = None
    notes: str | None = None


class PaymentUpdate(BaseModel):
    amount: Decimal | None = None
    date: UtcDatetime | None = None
    method: str | None = Field(
        default=None,
        pattern=r"^(cash|check|credit_card|debit_card|ach|wire|other)$",
    )
    reference: str | None = None
    notes: str | None = None


class PaymentResponse(BaseModel):
    id: UUID
    amount: str
    date: datetime
    method: str
    reference: str | None = None
    notes: str | None = None


class TimeEntryCreate(BaseModel):
    start_time: UtcDatetime
    end_time: UtcDatetime | None = None
    user_id: str | None = None
    user_name: str = ""
    notes: str | None = None


class TimeEntryUpdate(BaseModel):
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None
    user_id: str | None = None
    user_name: str | None = None
    notes: str | None = None


class TimeEntryResponse(BaseModel):
    id: UUID
    start_time: datetime
    end_time: datetime | None = None
    user_id: str | None = None
    user_name: str
    notes: str | None = None


class PhotoRequest(BaseModel):
    url: str = Field(..., min_length=1)


class TotalsResponse(BaseModel):
    subtotal: str
    taxable_amount: str
    tax_amount: str
    total: str
    amount_paid: str
    balance: str
    credit: str


# Document create schemas
class DocumentCreate(BaseModel):
    """Fields shared by every document kind on creation."""

    model_config = ConfigDict(str_strip_whitespace=True)

    customer_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_email: str = ""
    customer_phone: str = ""
    service_address: str = ""
    job_id: str | None = None
    job_name: str | None = None
    line_items: list[LineItemCreate] = Field(default_factory=list)
    tax_rate: Decimal = Decimal("0")
    notes: str | None = None
    created_by: str | None = None


class EstimateCreate(DocumentCreate):
    valid_until: UtcDatetime | None = None
    billing_address: str | None = None
    terms_and_conditions: str | None = None


class WorkOrderCreate(DocumentCreate):
    assigned_to: list[str] = Field(default_factory=list)
    priority: str = Field(default="normal", pattern=r"^(low|normal|high|urgent)$")
    internal_notes: str | None = None
    customer_notes: str | None = None
    instructions: str | None = None


class InvoiceCreate(DocumentCreate):
    due_date: UtcDatetime | None = None
    payment_terms: str = "Net 30"
    billing_address: str | None = None
    terms_and_conditions: str | None = None


class DocumentPatch(BaseModel):
    """Partial update; field names match the response fields."""

    changes: dict[str, Any] = Field(..., min_length=1)
    expected_version: int | None = None


# Document response schemas
class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    document_number: str
    status: str
    customer_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    service_address: str
    job_id: str | None = None
    job_name: str | None = None
    date: datetime
    line_items: list[LineItemResponse]
    tax_rate: str
    totals: TotalsResponse
    notes: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
    version: int


class EstimateResponse(DocumentResponse):
    kind: Literal["estimate"]
    valid_until: datetime | None = None
    billing_address: str | None = None
    terms_and_conditions: str | None = None
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    converted_to_work_order_id: UUID | None = None
    converted_to_invoice_id: UUID | None = None


class WorkOrderResponse(DocumentResponse):
    kind: Literal["work_order"]
    estimate_id: UUID | None = None
    scheduled_date: datetime | None = None
    scheduled_time: str | None = None
    assigned_to: list[str]
    priority: str
    internal_notes: str | None = None
    customer_notes: str | None = None
    instructions: str | None = None
    photos: list[str]
    time_tracking: list[TimeEntryResponse]
    started_at: datetime | None = None
    completed_at: datetime | None = None
    converted_to_invoice_id: UUID | None = None


class InvoiceResponse(DocumentResponse):
    kind: Literal["invoice"]
    payments: list[PaymentResponse]
    due_date: datetime | None = None
    payment_terms: str
    work_order_id: UUID | None = None
    estimate_id: UUID | None = None
    billing_address: str | None = None
    terms_and_conditions: str | None = None
    sent_at: datetime | None = None
    viewed_at: datetime | None = None
    paid_at: datetime | None = None


# Action schemas
class ScheduleRequest(BaseModel):
    scheduled_date: UtcDatetime
    scheduled_time: str | None = None


class MarkPaidRequest(BaseModel):
    method: str = Field(
        default="other",
        pattern=r"^(cash|check|credit_card|debit_card|ach|wire|other)$",
    )


class WorkOrderConversionRequest(BaseModel):
    scheduled_date: UtcDatetime | None = None
    scheduled_time: str | None = None
    assigned_to: list[str] = Field(default_factory=list)
    priority: str = Field(default="normal", pattern=r"^(low|normal|high|urgent)$")
    instructions: str | None = None


class InvoiceConversionRequest(BaseModel):
    payment_terms: str | None = None
    due_date: UtcDatetime | None = None


class CreatedResponse(BaseModel):
    id: UUID


__all__ = [
    "CreatedResponse",
    "DocumentPatch",
    "EstimateCreate",
    "EstimateResponse",
    "HealthResponse",
    "InvoiceConversionRequest",
    "InvoiceCreate",
    "InvoiceResponse",
    "LineItemCreate",
    "LineItemUpdate",
    "MarkPaidRequest",
    "PaymentCreate",
    "PaymentUpdate",
    "PhotoRequest",
    "ScheduleRequest",
    "TimeEntryCreate",
    "TimeEntryUpdate",
    "WorkOrderConversionRequest",
    "WorkOrderCreate",
    "WorkOrderResponse",
]
