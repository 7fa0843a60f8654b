"""
Customer Service - creation, partial update and lookup of kiosk customers

Lookups decorate the stored record with derived fields: get() attaches the
rolling daily volume, get_by_id() and batch() attach the status.
"""
import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Union
from uuid import uuid4
from motor.motor_asyncio import AsyncIOMotorClientSession
from pydantic import ValidationError

from kiosk_compliance.config import CustomerServiceConfig
from kiosk_compliance.database.transactions import with_transaction
from kiosk_compliance.database.customer_operations import (
    insert_customer,
    find_customer_by_phone,
    find_customer_by_id,
    update_customer_by_id,
    list_recent_customers,
    sum_cash_in_since,
    sum_cash_out_since,
)
from kiosk_compliance.database.compliance_override_operations import list_compliance_overrides
from kiosk_compliance.exceptions import CustomerValidationError
from kiosk_compliance.models import (
    ComplianceOverride,
    ComplianceOverrideCreate,
    Customer,
    CustomerCreate,
    normalize_customer_update,
)
from kiosk_compliance.services.override_tracker import OverrideTracker
from kiosk_compliance.services.status import derive_status
from kiosk_compliance.utils.secure_logging import get_secure_logger

logger = get_secure_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_customer_id() -> str:
    return str(uuid4())


class CustomerService:
    """
    Orchestrates customer creation, updates and lookups
    """

    def __init__(
        self,
        config: Optional[CustomerServiceConfig] = None,
        override_tracker: Optional[OverrideTracker] = None,
        id_factory: Callable[[], str] = _new_customer_id,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config or CustomerServiceConfig()
        self.override_tracker = override_tracker or OverrideTracker(self.config.override_fields)
        self.id_factory = id_factory
        self.clock = clock

    async def add(self, customer: Union[CustomerCreate, Mapping[str, Any]]) -> Customer:
        """
        Register a new customer by phone
        
        Args:
            customer: Record containing at least the phone number
            
        Returns:
            Stored customer
            
        Raises:
            CustomerValidationError: Phone number missing
            DuplicatePhoneError: Phone number already registered
            StoreError: Any other persistence failure
        """
        if not isinstance(customer, CustomerCreate):
            try:
                customer = CustomerCreate.model_validate(customer)
            except ValidationError as e:
                raise CustomerValidationError(
                    "Customer phone is required",
                    internal_message=str(e),
                    context={"fields": ["phone"]},
                ) from e

        created = await insert_customer(self.id_factory(), customer.phone, self.clock())
        logger.info(f"Customer created: {created['id']}")
        return Customer.model_validate(created)

    async def get(self, phone: str) -> Optional[Customer]:
        """
        Find a customer by phone and attach the daily volume
        
        Args:
            phone: Customer's phone number
            
        Returns:
            Customer with daily_volume, or None if not registered
        """
        customer = await find_customer_by_phone(phone)
        if not customer:
            return None

        daily_volume = await self.get_daily_volume(customer["id"])
        return Customer.model_validate({**customer, "daily_volume": daily_volume})

    async def get_by_id(self, customer_id: str) -> Optional[Customer]:
        """Find a customer by id and attach the status, or None"""
        customer = await find_customer_by_id(customer_id)
        return self._format(customer) if customer else None

    async def update(
        self,
        customer_id: str,
        data: Mapping[str, Any],
        acting_user: Optional[str] = None
    ) -> Optional[Customer]:
        """
        Apply a partial update to a customer
        
        Override fields set by the update are attributed to the acting user and
        get one compliance override audit record each.
        
        Args:
            customer_id: ID of the customer
            data: Fields to change; an `id` key is ignored
            acting_user: Identifier of the reviewer, None for system updates
            
        Returns:
            Updated customer with status, or None if no customer has this id
            
        Raises:
            CustomerValidationError: Unknown, read-only or malformed fields
            StoreError: Persistence failure of the customer row
        """
        update_data = normalize_customer_update(data)
        if not update_data:
            # Nothing to change
            return await self.get_by_id(customer_id)

        overrides = self.override_tracker.collect_overrides(customer_id, update_data, acting_user)
        update_data = self.override_tracker.add_override_attribution(update_data, acting_user)

        if self.config.audit_in_transaction:
            customer = await self._update_with_audit(customer_id, update_data, overrides)
        else:
            self.override_tracker.record_in_background(overrides)
            customer = await update_customer_by_id(customer_id, update_data)

        if customer is None:
            logger.warning(f"Update of unknown customer {customer_id}")
            return None

        logger.info(
            f"Customer {customer_id} updated: fields={sorted(update_data)} "
            f"overrides={len(overrides)}"
        )
        return self._format(customer)

    @with_transaction
    async def _update_with_audit(
        self,
        customer_id: str,
        update_data: Dict[str, Any],
        overrides: List[ComplianceOverrideCreate],
        session: AsyncIOMotorClientSession
    ) -> Optional[Dict[str, Any]]:
        customer = await update_customer_by_id(customer_id, update_data, session=session)
        if customer is not None:
            await self.override_tracker.record(overrides, session=session)
        return customer

    async def batch(self) -> List[Customer]:
        """
        List the most recent customers, newest first, each with status
        
        The anonymous placeholder customer is never listed.
        """
        customers = await list_recent_customers(
            self.config.anonymous_customer_id,
            self.config.page_size
        )
        return [self._format(customer) for customer in customers]

    async def get_daily_volume(self, customer_id: str) -> Decimal:
        """
        Sum a customer's cash-in and cash-out fiat over the trailing window
        
        Args:
            customer_id: ID of the customer
            
        Returns:
            Combined total, zero when there are no transactions
        """
        since = self.clock() - self.config.daily_volume_window
        cash_in_total, cash_out_total = await asyncio.gather(
            sum_cash_in_since(customer_id, since),
            sum_cash_out_since(customer_id, since),
        )
        return cash_in_total + cash_out_total

    async def get_compliance_overrides(self, customer_id: str) -> List[ComplianceOverride]:
        """List a customer's override audit trail, newest first"""
        overrides = await list_compliance_overrides(customer_id)
        return [ComplianceOverride.model_validate(override) for override in overrides]

    def _format(self, customer: Dict[str, Any]) -> Customer:
        return Customer.model_validate({**customer, "status": derive_status(customer)})
