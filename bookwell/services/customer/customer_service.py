# ===== bookwell/services/customer/customer_service.py =====
from typing import Optional, Dict, Any, List
from uuid import UUID
from datetime import datetime, timezone
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from bookwell.core.errors import CustomerBlocked, NotFoundError
from bookwell.models.appointment import Appointment, AppointmentStatus
from bookwell.models.business import Business
from bookwell.models.customer import Customer, CustomerAction, CustomerStatus
from bookwell.utils.contact import normalize_email, normalize_phone

logger = logging.getLogger(__name__)


class CustomerService:
    """Customers are identified by email, separately within each business"""

    @staticmethod
    def find(db: Session, business_id: UUID, email: str) -> Optional[Customer]:
        email = normalize_email(email)
        if not email:
            return None
        return db.query(Customer).filter(
            Customer.business_id == business_id,
            Customer.email == email
        ).first()

    @staticmethod
    def upsert(
            db: Session,
            business_id: UUID,
            email: str,
            full_name: Optional[str] = None,
            phone: Optional[str] = None
    ) -> Customer:
        """
        Find the customer by email or create it; refresh name and phone when given.
        A hidden customer shows up in the list again.
        """
        email = normalize_email(email)
        customer = CustomerService.find(db, business_id, email)
        if customer is None:
            customer = Customer(
                business_id=business_id,
                email=email,
                full_name=(full_name or "").strip() or email,
                phone=normalize_phone(phone) or None,
                status=CustomerStatus.ACTIVE.value,
            )
            db.add(customer)
            db.flush()
            logger.info(f"Created customer {customer.id} for business {business_id}")
            return customer

        if full_name and full_name.strip():
            customer.full_name = full_name.strip()
        if phone and normalize_phone(phone):
            customer.phone = normalize_phone(phone)
        customer.is_hidden = False
        return customer

    @staticmethod
    def is_owner_email(business: Business, email: str) -> bool:
        owner = business.owner
        return owner is not None and normalize_email(owner.email) == normalize_email(email)

    @staticmethod
    def ensure_can_book(business: Business, customer: Optional[Customer]):
        """
        Raises:
            CustomerBlocked: the business blocked this customer
        """
        if customer is None or not customer.is_blocked:
            return
        if CustomerService.is_owner_email(business, customer.email):
            return
        raise CustomerBlocked()

    @staticmethod
    def touch_last_appointment(customer: Optional[Customer]):
        if customer is not None:
            customer.last_appointment_at = datetime.now(timezone.utc)

    @staticmethod
    def list_customers(db: Session, business_id: UUID, include_hidden: bool = False) -> Dict[str, Any]:
        """Customers of a business with their BOOKED appointment counts"""
        booked_counts = dict(
            db.query(Appointment.customer_id, func.count(Appointment.id)).filter(
                Appointment.business_id == business_id,
                Appointment.status == AppointmentStatus.BOOKED.value,
                Appointment.customer_id.isnot(None)
            ).group_by(Appointment.customer_id).all()
        )

        query = db.query(Customer).filter(Customer.business_id == business_id)
        if not include_hidden:
            query = query.filter(Customer.is_hidden == False)
        customers: List[Customer] = query.order_by(Customer.full_name.asc()).all()

        items = []
        for customer in customers:
            item = customer.to_dict()
            item["bookedAppointments"] = booked_counts.get(customer.id, 0)
            item["lastAppointmentAt"] = (
                customer.last_appointment_at.isoformat() if customer.last_appointment_at else None
            )
            items.append(item)

        return {"customers": items, "total": len(items)}

    @staticmethod
    def get(db: Session, business_id: UUID, customer_id: UUID) -> Customer:
        customer = db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.business_id == business_id
        ).first()
        if customer is None:
            raise NotFoundError("Customer not found")
        return customer

    @staticmethod
    def set_status(db: Session, business_id: UUID, customer_id: UUID, status: CustomerStatus) -> Customer:
        customer = CustomerService.get(db, business_id, customer_id)
        customer.status = status.value
        db.commit()
        db.refresh(customer)
        logger.info(f"Customer {customer_id} of business {business_id} is now {status.value}")
        return customer

    @staticmethod
    def apply_action(db: Session, business_id: UUID, customer_id: UUID, action: CustomerAction) -> Customer:
        """block / unblock change the booking status, hide / unhide only the list visibility"""
        if action == CustomerAction.BLOCK:
            return CustomerService.set_status(db, business_id, customer_id, CustomerStatus.BLOCKED)
        if action == CustomerAction.UNBLOCK:
            return CustomerService.set_status(db, business_id, customer_id, CustomerStatus.ACTIVE)

        customer = CustomerService.get(db, business_id, customer_id)
        customer.is_hidden = action == CustomerAction.HIDE
        db.commit()
        db.refresh(customer)
        logger.info(f"Customer {customer_id} of business {business_id} hidden={customer.is_hidden}")
        return customer
