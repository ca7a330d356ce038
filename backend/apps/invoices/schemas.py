"""Request and response models for the invoicing API."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from invoicing.dto import LineItemInput, LineTax, RoundingMode, TaxMode

InvoiceStatus = Literal["draft", "sent", "paid"]


class LineTaxIn(BaseModel):
    percent: Decimal
    note: Optional[str] = None
    code: str = "S"

    def to_line_tax(self) -> LineTax:
        return LineTax(percent=self.percent, note=self.note, code=self.code)


class InvoiceItemIn(BaseModel):
    description: str
    hours: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    rate_modifier_id: Optional[str] = None
    distance: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    taxes: list[LineTaxIn] = Field(default_factory=list)
    notes: Optional[str] = None

    def to_line_input(self) -> LineItemInput:
        return LineItemInput(
            description=self.description,
            hours=self.hours,
            rate=self.rate,
            rate_modifier_id=self.rate_modifier_id,
            distance=self.distance,
            quantity=self.quantity,
            unit_price=self.unit_price,
            taxes=tuple(tax.to_line_tax() for tax in self.taxes),
            notes=self.notes,
        )


class CalculationConfigIn(BaseModel):
    discount_percentage: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    tax_rate: Optional[Decimal] = None
    prices_include_tax: Optional[bool] = None
    rounding_mode: Optional[RoundingMode] = None
    tax_mode: Optional[TaxMode] = None


class CalculateRequest(CalculationConfigIn):
    items: list[InvoiceItemIn] = Field(default_factory=list)


class InvoiceCreate(CalculationConfigIn):
    customer_id: str
    invoice_number: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: Optional[str] = None
    status: InvoiceStatus = "draft"
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    items: list[InvoiceItemIn] = Field(default_factory=list)


class InvoiceUpdate(CalculationConfigIn):
    """Partial update; only fields present in the request body are applied."""

    customer_id: Optional[str] = None
    invoice_number: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    currency: Optional[str] = None
    status: Optional[InvoiceStatus] = None
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    items: Optional[list[InvoiceItemIn]] = None


class LineTaxOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    percent: Decimal
    amount: Decimal
    code: str = "S"
    note: Optional[str] = None


class InvoiceItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    position: int
    description: str
    hours: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    rate_modifier_id: Optional[str] = None
    distance: Optional[Decimal] = None
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = None
    line_total: Decimal
    notes: Optional[str] = None
    taxes: list[LineTaxOut] = Field(default_factory=list)


class InvoiceTaxOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    percent: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal


class CustomerIn(BaseModel):
    name: str
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    tax_id: Optional[str] = None
    default_hourly_rate: Optional[Decimal] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    tax_id: Optional[str] = None
    default_hourly_rate: Optional[Decimal] = None


class CustomerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country_code: Optional[str] = None
    tax_id: Optional[str] = None
    default_hourly_rate: Decimal
    created_at: Optional[datetime] = None


class InvoiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_number: str
    customer_id: str
    status: str
    issue_date: date
    due_date: Optional[date] = None
    currency: str
    subtotal: Decimal
    discount_amount: Decimal
    discount_percentage: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    prices_include_tax: bool
    rounding_mode: str
    tax_mode: str
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    share_token: str
    customer: Optional[CustomerOut] = None
    items: list[InvoiceItemOut] = Field(default_factory=list)
    taxes: list[InvoiceTaxOut] = Field(default_factory=list)


class InvoiceSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_number: str
    customer_id: str
    status: str
    issue_date: date
    due_date: Optional[date] = None
    currency: str
    total: Decimal


class PublishOut(BaseModel):
    invoice_number: str
    share_token: str
    share_url: str


class UnpublishOut(BaseModel):
    share_token: str


class NextNumberOut(BaseModel):
    invoice_number: str


class RateModifierIn(BaseModel):
    name: str
    multiplier: Decimal
    description: Optional[str] = None
    is_default: bool = False


class RateModifierUpdate(BaseModel):
    name: Optional[str] = None
    multiplier: Optional[Decimal] = None
    description: Optional[str] = None
    is_default: Optional[bool] = None


class RateModifierOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    multiplier: Decimal
    description: Optional[str] = None
    is_default: bool
