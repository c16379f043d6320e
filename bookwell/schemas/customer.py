"""Customer management schemas"""
from bookwell.models.customer import CustomerAction, CustomerStatus
from bookwell.schemas.base import CamelModel


class CustomerStatusRequest(CamelModel):
    status: CustomerStatus


class CustomerActionRequest(CamelModel):
    action: CustomerAction
