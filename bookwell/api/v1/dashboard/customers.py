# ============================================================================
# FILE: bookwell/api/v1/dashboard/customers.py
# Customer list, booking history, blocking and hiding
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from uuid import UUID

from bookwell.api.dependencies import get_current_business
from bookwell.config.database import get_db
from bookwell.models.business import Business
from bookwell.schemas.customer import CustomerActionRequest, CustomerStatusRequest
from bookwell.services.appointment.appointment_query_service import AppointmentQueryService
from bookwell.services.customer.customer_service import CustomerService

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("")
def list_customers(
        include_hidden: bool = Query(False, alias="includeHidden"),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    return CustomerService.list_customers(db, business.id, include_hidden)


@router.patch("/{customer_id}")
def update_customer(
        body: CustomerActionRequest,
        customer_id: UUID = Path(...),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    """Actions: block, unblock, hide, unhide"""
    customer = CustomerService.apply_action(db, business.id, customer_id, body.action)
    return {"ok": True, "customer": customer.to_dict()}


@router.post("/{customer_id}/status")
def set_customer_status(
        body: CustomerStatusRequest,
        customer_id: UUID = Path(...),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    """Block or unblock a customer. Blocked customers cannot book online."""
    customer = CustomerService.set_status(db, business.id, customer_id, body.status)
    return {"ok": True, "customer": customer.to_dict()}


@router.get("/{customer_id}/appointments")
def customer_appointments(
        customer_id: UUID = Path(...),
        page: int = Query(1),
        page_size: int = Query(10, alias="pageSize"),
        business: Business = Depends(get_current_business),
        db: Session = Depends(get_db)
):
    CustomerService.get(db, business.id, customer_id)
    return AppointmentQueryService.for_customer_history(db, business, customer_id, page, page_size)
