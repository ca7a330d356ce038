"""Invoice lifecycle: create, update, publish, duplicate and export.

This is the calling layer around the calculation core. It validates input
before the core sees it, snapshots rate modifiers and the mileage rate,
persists the computed figures and re-derives them from the stored rows.
"""

import secrets
import time
import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection, Engine

from backend.core.config import settings as app_settings
from backend.core.logging import get_logger
from backend.core.observability import metrics
from invoicing.document import DocumentLine, InvoiceDocument, Party
from invoicing.dto import (
    InvoiceConfig,
    InvoiceTotals,
    LineItemInput,
    LineTax,
    RoundingMode,
    TaxMode,
    TaxSummaryRow,
)
from invoicing.money import ZERO, to_decimal
from invoicing.numbering import InvoiceNumberService, NumberingOptions, is_draft_number
from invoicing.pdf import render_invoice_pdf
from invoicing.totals import compute_invoice_totals, rederive_invoice_totals, resolve_tax_mode
from invoicing.ubl import build_ubl_xml

from . import repository
from .customers import fetch_customer
from .rate_modifiers import load_modifier_resolver
from .repository import InvoiceRecord
from .schemas import CalculateRequest, InvoiceCreate, InvoiceItemIn, InvoiceUpdate
from .tables import invoice_item_taxes, invoice_items, invoice_taxes, invoices

logger = get_logger(__name__)

ISSUED_IMMUTABLE_FIELDS = frozenset(
    (
        "items",
        "discount_amount",
        "discount_percentage",
        "tax_rate",
        "prices_include_tax",
        "rounding_mode",
        "tax_mode",
        "currency",
        "customer_id",
        "issue_date",
        "invoice_number",
    )
)
CONFIG_FIELDS = (
    "discount_percentage",
    "discount_amount",
    "tax_rate",
    "prices_include_tax",
    "rounding_mode",
    "tax_mode",
)


class InvoiceError(RuntimeError):
    pass


class InvoiceNotFoundError(InvoiceError):
    pass


class DuplicateInvoiceNumberError(InvoiceError):
    pass


class InvoiceImmutableError(InvoiceError):
    pass


class InvoiceValidationError(InvoiceError):
    pass


class InvoicePublishError(InvoiceError):
    def __init__(self, missing: Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            "Cannot publish invoice. Missing required fields: " + ", ".join(self.missing)
        )


class CustomerNotFoundError(InvoiceError):
    pass


@dataclass(frozen=True)
class PublishResult:
    invoice_number: str
    share_token: str
    share_url: str


def _default_token() -> str:
    return secrets.token_urlsafe(24)


def validate_items(items: Iterable[InvoiceItemIn]) -> None:
    """Reject blank descriptions and negative numbers before calculation."""
    errors: List[str] = []
    for index, item in enumerate(items, start=1):
        if not (item.description or "").strip():
            errors.append(f"item {index}: description is required")
        for name in ("hours", "rate", "distance", "quantity", "unit_price"):
            value = getattr(item, name)
            if value is not None and value < ZERO:
                errors.append(f"item {index}: {name} must not be negative")
        for tax in item.taxes:
            if tax.percent < ZERO:
                errors.append(f"item {index}: tax percent must not be negative")
    if errors:
        raise InvoiceValidationError("; ".join(errors))


def _validate_config(discount_percentage: Decimal, discount_amount: Decimal, tax_rate: Decimal) -> None:
    if discount_percentage < ZERO or discount_percentage > Decimal("100"):
        raise InvoiceValidationError("discount_percentage must be between 0 and 100")
    if discount_amount < ZERO:
        raise InvoiceValidationError("discount_amount must not be negative")
    if tax_rate < ZERO:
        raise InvoiceValidationError("tax_rate must not be negative")


def derive_status(record: InvoiceRecord, today: date) -> str:
    """``overdue`` is reported, never stored."""
    if record.status != "paid" and record.due_date is not None and record.due_date < today:
        return "overdue"
    return record.status


def _mileage_rate(values: Dict[str, str]) -> Decimal:
    return repository.setting_decimal(values, "mileageRate", app_settings.DEFAULT_MILEAGE_RATE)


def _persisted_config(record: InvoiceRecord) -> InvoiceConfig:
    return InvoiceConfig(
        discount_percentage=record.discount_percentage,
        discount_amount=record.flat_discount,
        tax_rate=record.tax_rate,
        prices_include_tax=record.prices_include_tax,
        rounding_mode=RoundingMode(record.rounding_mode),
        tax_mode=TaxMode(record.tax_mode),
    )


def _stored_totals(record: InvoiceRecord) -> InvoiceTotals:
    return InvoiceTotals(
        subtotal=record.subtotal,
        discount_amount=record.discount_amount,
        tax_amount=record.tax_amount,
        total=record.total,
        tax_mode=TaxMode(record.tax_mode),
        tax_summary=[
            TaxSummaryRow(percent=t.percent, taxable_amount=t.taxable_amount, tax_amount=t.tax_amount)
            for t in record.taxes
        ],
    )


def _item_from_record(item: repository.InvoiceItemRecord) -> InvoiceItemIn:
    return InvoiceItemIn(
        description=item.description,
        hours=item.hours,
        rate=item.rate,
        rate_modifier_id=item.rate_modifier_id,
        distance=item.distance,
        quantity=item.quantity,
        unit_price=item.unit_price,
        taxes=[{"percent": t.percent, "note": t.note, "code": t.code} for t in item.taxes],
        notes=item.notes,
    )


class InvoiceService:
    def __init__(
        self,
        engine: Engine,
        *,
        clock: Optional[Callable[[], date]] = None,
        numbers: Optional[InvoiceNumberService] = None,
        token_factory: Optional[Callable[[], str]] = None,
        base_url: Optional[str] = None,
    ) -> None:
        self._engine = engine
        self._clock = clock or date.today
        self._numbers = numbers or InvoiceNumberService(clock=self._clock)
        self._token_factory = token_factory or _default_token
        self._base_url = (base_url or app_settings.BASE_URL).rstrip("/")

    # -- calculation ---------------------------------------------------------

    def _build_config(
        self,
        values: Dict[str, str],
        items: Sequence[LineItemInput],
        *,
        discount_percentage=None,
        discount_amount=None,
        tax_rate=None,
        prices_include_tax: Optional[bool] = None,
        rounding_mode=None,
        tax_mode=None,
    ) -> InvoiceConfig:
        if tax_rate is None:
            tax_rate = repository.setting_decimal(values, "defaultTaxRate", ZERO)
        if prices_include_tax is None:
            prices_include_tax = repository.setting_bool(values, "defaultPricesIncludeTax")
        if rounding_mode is None:
            rounding_mode = values.get("defaultRoundingMode") or RoundingMode.PER_LINE
        percentage = to_decimal(discount_percentage)
        amount = to_decimal(discount_amount)
        tax_rate = to_decimal(tax_rate)
        _validate_config(percentage, amount, tax_rate)
        try:
            rounding = RoundingMode(rounding_mode)
        except ValueError:
            rounding = RoundingMode.PER_LINE
        return InvoiceConfig(
            discount_percentage=percentage,
            discount_amount=amount,
            tax_rate=tax_rate,
            prices_include_tax=bool(prices_include_tax),
            rounding_mode=rounding,
            tax_mode=resolve_tax_mode(items, tax_mode),
        )

    def _compute(self, conn: Connection, items: Sequence[LineItemInput], config: InvoiceConfig) -> InvoiceTotals:
        values = repository.read_settings(conn)
        started = time.perf_counter()
        totals = compute_invoice_totals(
            items,
            config,
            resolve_modifier=load_modifier_resolver(conn),
            mileage_rate=_mileage_rate(values),
        )
        metrics.observe_duration(started, "invoice_calculation_ms")
        return totals

    def calculate(self, request: CalculateRequest) -> InvoiceTotals:
        """Stateless preview using the stored modifiers and settings."""
        validate_items(request.items)
        items = [item.to_line_input() for item in request.items]
        with self._engine.begin() as conn:
            values = repository.read_settings(conn)
            config = self._build_config(
                values, items, **request.model_dump(include=set(CONFIG_FIELDS))
            )
            return self._compute(conn, items, config)

    # -- persistence helpers -------------------------------------------------

    def _store_lines(
        self,
        conn: Connection,
        invoice_id: str,
        items: Sequence[LineItemInput],
        totals: InvoiceTotals,
    ) -> None:
        store_taxes = totals.tax_mode is TaxMode.LINE
        for position, (item, line) in enumerate(zip(items, totals.lines)):
            item_id = str(uuid.uuid4())
            conn.execute(
                insert(invoice_items).values(
                    id=item_id,
                    invoice_id=invoice_id,
                    position=position,
                    description=item.description.strip(),
                    hours=item.hours,
                    rate=item.rate,
                    rate_modifier_id=item.rate_modifier_id,
                    distance=item.distance,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=line.gross,
                    notes=item.notes,
                )
            )
            if store_taxes and line.taxes:
                conn.execute(
                    insert(invoice_item_taxes),
                    [
                        {
                            "id": str(uuid.uuid4()),
                            "invoice_item_id": item_id,
                            "position": tax_position,
                            "percent": tax.percent,
                            "amount": tax.amount,
                            "code": tax.code,
                            "note": tax.note,
                        }
                        for tax_position, tax in enumerate(line.taxes)
                    ],
                )

    def _store_summary(self, conn: Connection, invoice_id: str, totals: InvoiceTotals) -> None:
        conn.execute(delete(invoice_taxes).where(invoice_taxes.c.invoice_id == invoice_id))
        if totals.tax_mode is not TaxMode.LINE or not totals.tax_summary:
            return
        conn.execute(
            insert(invoice_taxes),
            [
                {
                    "id": str(uuid.uuid4()),
                    "invoice_id": invoice_id,
                    "percent": row.percent,
                    "taxable_amount": row.taxable_amount,
                    "tax_amount": row.tax_amount,
                }
                for row in totals.tax_summary
            ],
        )

    def _config_values(self, config: InvoiceConfig) -> Dict[str, object]:
        return {
            "discount_percentage": config.discount_percentage,
            "flat_discount": config.discount_amount,
            "tax_rate": config.tax_rate,
            "prices_include_tax": config.prices_include_tax,
            "rounding_mode": config.rounding_mode.value,
            "tax_mode": config.tax_mode.value,
        }

    def _header_values(self, totals: InvoiceTotals, config: InvoiceConfig) -> Dict[str, object]:
        values = self._config_values(config)
        values.update(
            subtotal=totals.subtotal,
            discount_amount=totals.discount_amount,
            tax_amount=totals.tax_amount,
            total=totals.total,
            tax_mode=totals.tax_mode.value,
        )
        if totals.tax_mode is TaxMode.LINE:
            values["tax_rate"] = ZERO
        return values

    def _rederive(self, conn: Connection, invoice_id: str, computed: Optional[InvoiceTotals]) -> InvoiceTotals:
        """Recompute from stored rows, log drift against ``computed`` and store the result."""
        record = repository.load_invoice(conn, invoice_id)
        config = _persisted_config(record)
        rederived = rederive_invoice_totals([item.persisted_line() for item in record.items], config)
        if computed is not None and rederived.figures() != computed.figures():
            metrics.increment_totals_drift()
            logger.error(
                "invoice_totals_drift",
                extra={
                    "invoice_id": invoice_id,
                    "computed": [str(v) for v in computed.figures()],
                    "rederived": [str(v) for v in rederived.figures()],
                },
            )
        conn.execute(
            update(invoices)
            .where(invoices.c.id == invoice_id)
            .values(**self._header_values(rederived, config))
        )
        self._store_summary(conn, invoice_id, rederived)
        return rederived

    def _allocate_number(self, conn: Connection) -> str:
        values = repository.read_settings(conn)
        number = self._numbers.next_number(
            repository.existing_invoice_numbers(conn), NumberingOptions.from_settings(values)
        )
        if repository.invoice_number_taken(conn, number):
            raise DuplicateInvoiceNumberError(f"Invoice number {number} already exists")
        return number

    def _load(self, conn: Connection, invoice_id: str) -> InvoiceRecord:
        record = repository.load_invoice(conn, invoice_id)
        if record is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
        return record

    def _present(self, conn: Connection, record: InvoiceRecord) -> InvoiceRecord:
        return replace(
            record,
            status=derive_status(record, self._clock()),
            customer=fetch_customer(conn, record.customer_id),
        )

    # -- operations ----------------------------------------------------------

    def next_number(self) -> str:
        with self._engine.begin() as conn:
            return self._allocate_number(conn)

    def create_invoice(self, request: InvoiceCreate) -> InvoiceRecord:
        validate_items(request.items)
        items = [item.to_line_input() for item in request.items]
        invoice_id = str(uuid.uuid4())

        with self._engine.begin() as conn:
            values = repository.read_settings(conn)
            if fetch_customer(conn, request.customer_id) is None:
                raise CustomerNotFoundError(f"Customer {request.customer_id} not found")

            invoice_number = (request.invoice_number or "").strip()
            if invoice_number:
                if repository.invoice_number_taken(conn, invoice_number):
                    raise DuplicateInvoiceNumberError("Invoice number already exists")
            elif NumberingOptions.from_settings(values).allocates_sequence_on_create:
                invoice_number = self._allocate_number(conn)
            else:
                invoice_number = self._numbers.draft_number()

            config = self._build_config(
                values, items, **request.model_dump(include=set(CONFIG_FIELDS))
            )
            totals = self._compute(conn, items, config)

            issue_date = request.issue_date or self._clock()
            conn.execute(
                insert(invoices).values(
                    id=invoice_id,
                    invoice_number=invoice_number,
                    customer_id=request.customer_id,
                    status=request.status,
                    issue_date=issue_date,
                    due_date=request.due_date,
                    currency=(request.currency or values.get("currency") or app_settings.DEFAULT_CURRENCY).upper(),
                    payment_terms=request.payment_terms or values.get("paymentTerms") or None,
                    notes=request.notes,
                    share_token=self._token_factory(),
                    **self._header_values(totals, config),
                )
            )
            self._store_lines(conn, invoice_id, items, totals)
            self._rederive(conn, invoice_id, totals)
            if request.status != "draft":
                self._finalize_number(conn, invoice_id)
            created = self._present(conn, self._load(conn, invoice_id))

        metrics.increment_invoices_created()
        logger.info(
            "invoice_created",
            extra={
                "invoice_id": invoice_id,
                "line_count": len(items),
                "tax_mode": totals.tax_mode.value,
                "total": str(created.total),
            },
        )
        return created

    def update_invoice(self, invoice_id: str, request: InvoiceUpdate) -> InvoiceRecord:
        provided = {
            name for name in request.model_fields_set if getattr(request, name) is not None
        }
        if "items" in provided:
            validate_items(request.items)

        with self._engine.begin() as conn:
            existing = self._load(conn, invoice_id)

            if existing.status != "draft":
                blocked = sorted(provided & ISSUED_IMMUTABLE_FIELDS)
                if blocked:
                    raise InvoiceImmutableError(
                        "Issued invoices cannot be modified. Create a credit note instead. "
                        f"Rejected fields: {', '.join(blocked)}"
                    )

            changes: Dict[str, object] = {}
            if "invoice_number" in provided:
                desired = request.invoice_number.strip()
                if desired and desired != existing.invoice_number:
                    if repository.invoice_number_taken(conn, desired, exclude_id=invoice_id):
                        raise DuplicateInvoiceNumberError("Invoice number already exists")
                    changes["invoice_number"] = desired
            if "customer_id" in provided:
                if fetch_customer(conn, request.customer_id) is None:
                    raise CustomerNotFoundError(f"Customer {request.customer_id} not found")
                changes["customer_id"] = request.customer_id
            for name in ("issue_date", "status", "payment_terms"):
                if name in provided:
                    changes[name] = getattr(request, name)
            if "currency" in provided:
                changes["currency"] = request.currency.upper()
            if "due_date" in request.model_fields_set:
                changes["due_date"] = request.due_date
            if "notes" in request.model_fields_set:
                notes = request.notes or ""
                changes["notes"] = notes if notes.strip() else None

            if changes:
                conn.execute(update(invoices).where(invoices.c.id == invoice_id).values(**changes))

            config_changes = {name: getattr(request, name) for name in CONFIG_FIELDS if name in provided}
            if "items" in provided:
                # new items: tax mode is inferred again unless stated
                items = [item.to_line_input() for item in request.items]
                config = self._merged_config(conn, existing, items, config_changes, keep_tax_mode=False)
                totals = self._compute(conn, items, config)
                repository.delete_invoice_children(conn, invoice_id)
                conn.execute(
                    update(invoices)
                    .where(invoices.c.id == invoice_id)
                    .values(**self._header_values(totals, config))
                )
                self._store_lines(conn, invoice_id, items, totals)
                self._rederive(conn, invoice_id, totals)
            elif config_changes:
                lines = [item.persisted_line() for item in existing.items]
                config = self._merged_config(conn, existing, lines, config_changes, keep_tax_mode=True)
                conn.execute(
                    update(invoices)
                    .where(invoices.c.id == invoice_id)
                    .values(**self._config_values(config))
                )
                self._rederive(conn, invoice_id, None)

            if existing.status == "draft" and changes.get("status") in ("sent", "paid"):
                self._finalize_number(conn, invoice_id)

            updated = self._present(conn, self._load(conn, invoice_id))

        logger.info("invoice_updated", extra={"invoice_id": invoice_id, "fields": sorted(provided)})
        return updated

    def _merged_config(
        self,
        conn: Connection,
        existing: InvoiceRecord,
        items: Sequence,
        changes: Dict[str, object],
        *,
        keep_tax_mode: bool,
    ) -> InvoiceConfig:
        merged: Dict[str, object] = {
            "discount_percentage": existing.discount_percentage,
            "discount_amount": existing.flat_discount,
            "tax_rate": existing.tax_rate,
            "prices_include_tax": existing.prices_include_tax,
            "rounding_mode": existing.rounding_mode,
            "tax_mode": existing.tax_mode if keep_tax_mode else None,
        }
        merged.update(changes)
        return self._build_config(repository.read_settings(conn), items, **merged)

    def _finalize_number(self, conn: Connection, invoice_id: str) -> str:
        """Replace a draft placeholder by the next real invoice number."""
        current = self._load(conn, invoice_id)
        if not is_draft_number(current.invoice_number):
            return current.invoice_number
        number = self._allocate_number(conn)
        conn.execute(update(invoices).where(invoices.c.id == invoice_id).values(invoice_number=number))
        logger.info("invoice_number_assigned", extra={"invoice_id": invoice_id})
        return number

    def publish_invoice(self, invoice_id: str) -> PublishResult:
        with self._engine.begin() as conn:
            record = self._load(conn, invoice_id)
            customer = fetch_customer(conn, record.customer_id)
            missing = []
            if customer is None or not (customer.name or "").strip():
                missing.append("customer.name")
            if not record.items:
                missing.append("items")
            if not record.currency:
                missing.append("currency")
            if not record.issue_date:
                missing.append("issue_date")
            if missing:
                raise InvoicePublishError(missing)

            number = record.invoice_number
            if record.status == "draft":
                number = self._finalize_number(conn, invoice_id)
                conn.execute(update(invoices).where(invoices.c.id == invoice_id).values(status="sent"))

        metrics.increment_invoices_published()
        logger.info("invoice_published", extra={"invoice_id": invoice_id})
        return PublishResult(
            invoice_number=number,
            share_token=record.share_token,
            share_url=f"{self._base_url}/api/v1/public/invoices/{record.share_token}",
        )

    def unpublish_invoice(self, invoice_id: str) -> str:
        token = self._token_factory()
        with self._engine.begin() as conn:
            self._load(conn, invoice_id)
            conn.execute(
                update(invoices).where(invoices.c.id == invoice_id).values(share_token=token, status="draft")
            )
        logger.info("invoice_unpublished", extra={"invoice_id": invoice_id})
        return token

    def duplicate_invoice(self, invoice_id: str) -> InvoiceRecord:
        with self._engine.begin() as conn:
            original = self._load(conn, invoice_id)
        request = InvoiceCreate(
            customer_id=original.customer_id,
            invoice_number=self._numbers.draft_number(),
            issue_date=self._clock(),
            due_date=original.due_date,
            currency=original.currency,
            status="draft",
            payment_terms=original.payment_terms,
            notes=original.notes,
            discount_percentage=original.discount_percentage,
            discount_amount=original.flat_discount,
            tax_rate=original.tax_rate,
            prices_include_tax=original.prices_include_tax,
            rounding_mode=original.rounding_mode,
            tax_mode=original.tax_mode,
            items=[_item_from_record(item) for item in original.items],
        )
        duplicate = self.create_invoice(request)
        logger.info("invoice_duplicated", extra={"invoice_id": invoice_id, "duplicate_id": duplicate.id})
        return duplicate

    def delete_invoice(self, invoice_id: str) -> None:
        with self._engine.begin() as conn:
            self._load(conn, invoice_id)
            repository.delete_invoice_children(conn, invoice_id)
            conn.execute(delete(invoices).where(invoices.c.id == invoice_id))
        logger.info("invoice_deleted", extra={"invoice_id": invoice_id})

    def get_invoice(self, invoice_id: str) -> InvoiceRecord:
        with self._engine.begin() as conn:
            return self._present(conn, self._load(conn, invoice_id))

    def get_invoice_by_share_token(self, share_token: str) -> InvoiceRecord:
        with self._engine.begin() as conn:
            record = repository.load_invoice_by_share_token(conn, share_token)
            if record is None:
                raise InvoiceNotFoundError("Invoice not found")
            return self._present(conn, record)

    def list_invoices(self) -> List[InvoiceRecord]:
        today = self._clock()
        with self._engine.begin() as conn:
            records = repository.list_invoice_rows(conn)
        return [replace(record, status=derive_status(record, today)) for record in records]

    # -- exports -------------------------------------------------------------

    def build_document(self, invoice_id: str) -> InvoiceDocument:
        with self._engine.begin() as conn:
            record = self._present(conn, self._load(conn, invoice_id))
            values = repository.read_settings(conn)

        supplier = Party(
            name=values.get("companyName") or "",
            street=values.get("companyAddress") or None,
            city=values.get("companyCity") or None,
            postal_code=values.get("companyPostalCode") or None,
            country_code=values.get("companyCountryCode") or None,
            email=values.get("companyEmail") or None,
            tax_id=values.get("companyTaxId") or None,
        )
        customer = record.customer
        buyer = Party(
            name=customer.name if customer else "",
            street=customer.address if customer else None,
            city=customer.city if customer else None,
            postal_code=customer.postal_code if customer else None,
            country_code=customer.country_code if customer else None,
            email=customer.email if customer else None,
            tax_id=customer.tax_id if customer else None,
        )
        lines = []
        for item in record.items:
            taxes = tuple(LineTax(percent=t.percent, note=t.note, code=t.code) for t in item.taxes)
            if item.hours is not None and item.hours > ZERO:
                lines.append(
                    DocumentLine(
                        description=item.description,
                        quantity=item.hours,
                        unit_price=to_decimal(item.rate),
                        line_total=item.line_total,
                        unit_code="HUR",
                        taxes=taxes,
                        distance=to_decimal(item.distance),
                    )
                )
            else:
                lines.append(
                    DocumentLine(
                        description=item.description,
                        quantity=to_decimal(item.quantity),
                        unit_price=to_decimal(item.unit_price),
                        line_total=item.line_total,
                        taxes=taxes,
                    )
                )
        due_date = record.due_date
        if due_date is None and app_settings.DEFAULT_DUE_DAYS > 0:
            due_date = record.issue_date + timedelta(days=app_settings.DEFAULT_DUE_DAYS)
        return InvoiceDocument(
            invoice_number=record.invoice_number,
            issue_date=record.issue_date,
            due_date=due_date,
            currency=record.currency,
            supplier=supplier,
            customer=buyer,
            totals=_stored_totals(record),
            tax_rate=record.tax_rate,
            payment_terms=record.payment_terms,
            notes=record.notes,
            prices_include_tax=record.prices_include_tax,
            lines=lines,
        )

    def export_ubl(self, invoice_id: str) -> bytes:
        xml_bytes = build_ubl_xml(self.build_document(invoice_id))
        logger.info("invoice_exported", extra={"invoice_id": invoice_id, "format": "ubl"})
        return xml_bytes

    def export_pdf(self, invoice_id: str, *, embed_xml: bool = True) -> bytes:
        document = self.build_document(invoice_id)
        xml_bytes = build_ubl_xml(document) if embed_xml else None
        pdf_bytes = render_invoice_pdf(document, xml_bytes)
        logger.info("invoice_exported", extra={"invoice_id": invoice_id, "format": "pdf"})
        return pdf_bytes
