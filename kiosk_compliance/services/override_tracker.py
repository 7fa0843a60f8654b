"""
Override Tracker - attribution and audit trail for compliance overrides

Every override field set on a customer is attributed to the acting reviewer
through a companion `<field>_by` column, and gets one ComplianceOverride audit
record. Audit records are either written inside the caller's transaction
(record) or as tracked background tasks (record_in_background) whose failures
are reported to the failure channel instead of the caller.
"""
import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple
from motor.motor_asyncio import AsyncIOMotorClientSession

from kiosk_compliance.database.compliance_override_operations import create_compliance_override
from kiosk_compliance.models import ComplianceOverrideCreate, OverrideField, OVERRIDE_FIELDS
from kiosk_compliance.utils.secure_logging import get_secure_logger

logger = get_secure_logger(__name__)


FailureCallback = Callable[[ComplianceOverrideCreate, BaseException], None]


class OverrideTracker:
    """
    Detects override fields in an update and records their audit trail
    """

    def __init__(
        self,
        override_fields: Tuple[OverrideField, ...] = OVERRIDE_FIELDS,
        on_failure: Optional[FailureCallback] = None,
    ):
        self.override_fields = override_fields
        self.on_failure = on_failure
        self._pending: Set[asyncio.Task] = set()

    def add_override_attribution(
        self,
        update_data: Mapping[str, Any],
        acting_user: Optional[str]
    ) -> Dict[str, Any]:
        """
        Add `<field>_by` columns naming the acting user for every override set
        
        Args:
            update_data: Normalized update, keyed by storage column
            acting_user: Identifier of the reviewer, None for system updates
            
        Returns:
            New dict with the attribution columns added
        """
        attributed = dict(update_data)
        if not acting_user:
            return attributed

        for field in self.override_fields:
            if update_data.get(field.column):
                attributed[field.attribution_column] = acting_user

        return attributed

    def collect_overrides(
        self,
        customer_id: str,
        update_data: Mapping[str, Any],
        acting_user: Optional[str]
    ) -> List[ComplianceOverrideCreate]:
        """
        Build one audit record per override field set in the update
        
        Args:
            customer_id: ID of the customer being updated
            update_data: Normalized update, keyed by storage column
            acting_user: Identifier of the reviewer, None for system updates
        """
        return [
            ComplianceOverrideCreate(
                customer_id=customer_id,
                compliance_type=field.compliance_type,
                override_by=acting_user,
                verification=update_data[field.column],
            )
            for field in self.override_fields
            if update_data.get(field.column)
        ]

    async def record(
        self,
        overrides: List[ComplianceOverrideCreate],
        session: Optional[AsyncIOMotorClientSession] = None
    ) -> List[Dict[str, Any]]:
        """
        Write audit records and wait for them; failures propagate
        
        Args:
            overrides: Audit records to write
            session: Optional MongoDB session for transactions
        """
        # Operations on one session must not overlap
        created = []
        for override in overrides:
            created.append(await create_compliance_override(override, session=session))
        return created

    def record_in_background(self, overrides: List[ComplianceOverrideCreate]) -> List[asyncio.Task]:
        """
        Schedule audit records without waiting for them
        
        Args:
            overrides: Audit records to write
            
        Returns:
            The scheduled tasks, one per record
        """
        tasks = []
        for override in overrides:
            task = asyncio.create_task(create_compliance_override(override))
            self._pending.add(task)
            task.add_done_callback(lambda t, o=override: self._on_done(o, t))
            tasks.append(task)
        return tasks

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all background audit writes to finish"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_done(self, override: ComplianceOverrideCreate, task: asyncio.Task) -> None:
        self._pending.discard(task)

        if task.cancelled():
            logger.warning(
                f"Compliance override audit write cancelled: "
                f"customer={override.customer_id} type={override.compliance_type.value}"
            )
            return

        error = task.exception()
        if error is None:
            logger.info(
                f"Compliance override recorded: customer={override.customer_id} "
                f"type={override.compliance_type.value} by={override.override_by}"
            )
            return

        logger.error(
            f"Compliance override audit write failed: customer={override.customer_id} "
            f"type={override.compliance_type.value}: {error}",
            exc_info=error,
        )
        if self.on_failure is not None:
            self.on_failure(override, error)
