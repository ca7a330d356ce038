"""HTTP routes for invoices, customers, rate modifiers and business settings."""

from typing import Any, Dict, List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from backend.core.observability import metrics

from . import repository
from .customers import CustomerError, CustomerInUseError, CustomerNotFoundError, CustomerService
from .rate_modifiers import (
    DefaultRateModifierError,
    RateModifierError,
    RateModifierInUseError,
    RateModifierNotFoundError,
    RateModifierService,
)
from .schemas import (
    CalculateRequest,
    CustomerIn,
    CustomerOut,
    CustomerUpdate,
    InvoiceCreate,
    InvoiceOut,
    InvoiceSummaryOut,
    InvoiceUpdate,
    NextNumberOut,
    PublishOut,
    RateModifierIn,
    RateModifierOut,
    RateModifierUpdate,
    UnpublishOut,
)
from .service import (
    CustomerNotFoundError as InvoiceCustomerNotFoundError,
    DuplicateInvoiceNumberError,
    InvoiceError,
    InvoiceImmutableError,
    InvoiceNotFoundError,
    InvoicePublishError,
    InvoiceService,
    InvoiceValidationError,
)

router = APIRouter(prefix="/api/v1")


def _error(status_code: int, code: str, detail: str) -> NoReturn:
    raise HTTPException(status_code=status_code, detail={"error": code, "detail": detail})


_ERROR_MAP = (
    (InvoiceNotFoundError, status.HTTP_404_NOT_FOUND, "invoice_not_found"),
    (InvoiceCustomerNotFoundError, status.HTTP_404_NOT_FOUND, "customer_not_found"),
    (DuplicateInvoiceNumberError, status.HTTP_409_CONFLICT, "duplicate_invoice_number"),
    (InvoiceImmutableError, status.HTTP_409_CONFLICT, "invoice_immutable"),
    (InvoicePublishError, status.HTTP_400_BAD_REQUEST, "publish_validation_failed"),
    (InvoiceValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (InvoiceError, status.HTTP_400_BAD_REQUEST, "invoice_error"),
    (CustomerNotFoundError, status.HTTP_404_NOT_FOUND, "customer_not_found"),
    (CustomerInUseError, status.HTTP_409_CONFLICT, "customer_in_use"),
    (CustomerError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (RateModifierNotFoundError, status.HTTP_404_NOT_FOUND, "rate_modifier_not_found"),
    (DefaultRateModifierError, status.HTTP_409_CONFLICT, "default_rate_modifier"),
    (RateModifierInUseError, status.HTTP_409_CONFLICT, "rate_modifier_in_use"),
    (RateModifierError, status.HTTP_400_BAD_REQUEST, "validation_error"),
)


def _raise_for(err: Exception) -> NoReturn:
    for exc_type, status_code, code in _ERROR_MAP:
        if isinstance(err, exc_type):
            _error(status_code, code, str(err))
    raise err


def get_invoice_service(request: Request) -> InvoiceService:
    state = request.app.state
    return InvoiceService(state.engine, clock=state.clock)


def get_customer_service(request: Request) -> CustomerService:
    return CustomerService(request.app.state.engine)


def get_rate_modifier_service(request: Request) -> RateModifierService:
    return RateModifierService(request.app.state.engine)


# -- invoices ----------------------------------------------------------------


@router.post("/invoices/calculate")
def calculate_invoice(payload: CalculateRequest, service: InvoiceService = Depends(get_invoice_service)) -> Dict[str, Any]:
    try:
        return service.calculate(payload).to_dict()
    except InvoiceError as err:
        _raise_for(err)


@router.get("/invoices", response_model=List[InvoiceSummaryOut])
def list_invoices(service: InvoiceService = Depends(get_invoice_service)):
    return [InvoiceSummaryOut.model_validate(record) for record in service.list_invoices()]


@router.post("/invoices", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice(payload: InvoiceCreate, service: InvoiceService = Depends(get_invoice_service)):
    try:
        return InvoiceOut.model_validate(service.create_invoice(payload))
    except InvoiceError as err:
        _raise_for(err)


@router.get("/invoices/next-number", response_model=NextNumberOut)
def next_invoice_number(service: InvoiceService = Depends(get_invoice_service)):
    try:
        return NextNumberOut(invoice_number=service.next_number())
    except InvoiceError as err:
        _raise_for(err)


@router.get("/invoices/{invoice_id}", response_model=InvoiceOut)
def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        return InvoiceOut.model_validate(service.get_invoice(invoice_id))
    except InvoiceError as err:
        _raise_for(err)


@router.put("/invoices/{invoice_id}", response_model=InvoiceOut)
def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    service: InvoiceService = Depends(get_invoice_service),
):
    try:
        return InvoiceOut.model_validate(service.update_invoice(invoice_id, payload))
    except InvoiceError as err:
        _raise_for(err)


@router.delete("/invoices/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        service.delete_invoice(invoice_id)
    except InvoiceError as err:
        _raise_for(err)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/invoices/{invoice_id}/publish", response_model=PublishOut)
def publish_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        result = service.publish_invoice(invoice_id)
    except InvoiceError as err:
        _raise_for(err)
    return PublishOut(
        invoice_number=result.invoice_number,
        share_token=result.share_token,
        share_url=result.share_url,
    )


@router.post("/invoices/{invoice_id}/unpublish", response_model=UnpublishOut)
def unpublish_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        return UnpublishOut(share_token=service.unpublish_invoice(invoice_id))
    except InvoiceError as err:
        _raise_for(err)


@router.post("/invoices/{invoice_id}/duplicate", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def duplicate_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        return InvoiceOut.model_validate(service.duplicate_invoice(invoice_id))
    except InvoiceError as err:
        _raise_for(err)


@router.get("/invoices/{invoice_id}/ubl.xml")
def export_invoice_ubl(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        xml_bytes = service.export_ubl(invoice_id)
    except InvoiceError as err:
        _raise_for(err)
    return Response(content=xml_bytes, media_type="application/xml")


@router.get("/invoices/{invoice_id}/pdf")
def export_invoice_pdf(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        pdf_bytes = service.export_pdf(invoice_id)
    except InvoiceError as err:
        _raise_for(err)
    return Response(content=pdf_bytes, media_type="application/pdf")


@router.get("/public/invoices/{share_token}", response_model=InvoiceOut)
def get_public_invoice(share_token: str, service: InvoiceService = Depends(get_invoice_service)):
    try:
        record = service.get_invoice_by_share_token(share_token)
    except InvoiceError as err:
        _raise_for(err)
    if record.status == "draft":
        _error(status.HTTP_404_NOT_FOUND, "invoice_not_found", "Invoice not found")
    return InvoiceOut.model_validate(record)


# -- customers ---------------------------------------------------------------


@router.get("/customers", response_model=List[CustomerOut])
def list_customers(service: CustomerService = Depends(get_customer_service)):
    return [CustomerOut.model_validate(customer) for customer in service.list()]


@router.post("/customers", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
def create_customer(payload: CustomerIn, service: CustomerService = Depends(get_customer_service)):
    try:
        return CustomerOut.model_validate(service.create(**payload.model_dump(exclude_none=True)))
    except CustomerError as err:
        _raise_for(err)


@router.get("/customers/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    try:
        return CustomerOut.model_validate(service.get(customer_id))
    except CustomerError as err:
        _raise_for(err)


@router.put("/customers/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
):
    try:
        return CustomerOut.model_validate(service.update(customer_id, **payload.model_dump(exclude_unset=True)))
    except CustomerError as err:
        _raise_for(err)


@router.delete("/customers/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    try:
        service.delete(customer_id)
    except CustomerError as err:
        _raise_for(err)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- rate modifiers ----------------------------------------------------------


@router.get("/rate-modifiers", response_model=List[RateModifierOut])
def list_rate_modifiers(service: RateModifierService = Depends(get_rate_modifier_service)):
    return [RateModifierOut.model_validate(modifier) for modifier in service.list()]


@router.post("/rate-modifiers", response_model=RateModifierOut, status_code=status.HTTP_201_CREATED)
def create_rate_modifier(
    payload: RateModifierIn,
    service: RateModifierService = Depends(get_rate_modifier_service),
):
    try:
        return RateModifierOut.model_validate(service.create(**payload.model_dump()))
    except RateModifierError as err:
        _raise_for(err)


@router.get("/rate-modifiers/{modifier_id}", response_model=RateModifierOut)
def get_rate_modifier(modifier_id: str, service: RateModifierService = Depends(get_rate_modifier_service)):
    try:
        return RateModifierOut.model_validate(service.get(modifier_id))
    except RateModifierError as err:
        _raise_for(err)


@router.put("/rate-modifiers/{modifier_id}", response_model=RateModifierOut)
def update_rate_modifier(
    modifier_id: str,
    payload: RateModifierUpdate,
    service: RateModifierService = Depends(get_rate_modifier_service),
):
    try:
        return RateModifierOut.model_validate(
            service.update(modifier_id, **payload.model_dump(exclude_unset=True))
        )
    except RateModifierError as err:
        _raise_for(err)


@router.delete("/rate-modifiers/{modifier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rate_modifier(modifier_id: str, service: RateModifierService = Depends(get_rate_modifier_service)):
    try:
        service.delete(modifier_id)
    except RateModifierError as err:
        _raise_for(err)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- business settings -------------------------------------------------------


@router.get("/settings", response_model=Dict[str, str])
def get_settings(request: Request):
    with request.app.state.engine.begin() as conn:
        return repository.read_settings(conn)


@router.patch("/settings", response_model=Dict[str, str])
def patch_settings(payload: Dict[str, Any], request: Request):
    values = {}
    for key, value in payload.items():
        if not isinstance(key, str) or not key.strip():
            _error(status.HTTP_400_BAD_REQUEST, "validation_error", "Setting keys must be non-empty strings")
        if isinstance(value, bool):
            value = "true" if value else "false"
        values[key.strip()] = "" if value is None else str(value)
    with request.app.state.engine.begin() as conn:
        repository.write_settings(conn, values)
        return repository.read_settings(conn)


@router.get("/metrics")
def get_metrics() -> Dict[str, Any]:
    return metrics.get_metrics()
