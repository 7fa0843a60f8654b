"""
Unit tests for OverrideTracker
"""
import pytest

from kiosk_compliance.database import COLLECTION_COMPLIANCE_OVERRIDES
from kiosk_compliance.models import ComplianceType, OverrideField
from kiosk_compliance.services import OverrideTracker


class TestOverrideDetection:

    @pytest.fixture
    def tracker(self):
        return OverrideTracker()

    @pytest.mark.unit
    def test_attribution_added_only_for_set_overrides(self, tracker):
        update = {"sms_override": "verified", "authorized_override": None, "name": "Ana"}

        attributed = tracker.add_override_attribution(update, "user-1")

        assert attributed["sms_override_by"] == "user-1"
        assert "authorized_override_by" not in attributed
        assert "name_by" not in attributed
        assert "sms_override_by" not in update

    @pytest.mark.unit
    def test_no_attribution_without_acting_user(self, tracker):
        update = {"sms_override": "verified"}

        assert tracker.add_override_attribution(update, None) == update

    @pytest.mark.unit
    def test_collect_maps_columns_to_compliance_types(self, tracker):
        update = {
            "sms_override": "verified",
            "id_card_data_override": "verified",
            "id_card_photo_override": "blocked",
            "front_facing_cam_override": "verified",
            "sanctions_check_override": "verified",
            "authorized_override": "verified",
            "id_card_at": None,
        }

        overrides = tracker.collect_overrides("c1", update, "user-1")

        assert [o.compliance_type for o in overrides] == [
            ComplianceType.SMS,
            ComplianceType.ID_CARD_DATA,
            ComplianceType.ID_CARD_PHOTO,
            ComplianceType.FRONT_CAMERA,
            ComplianceType.SANCTIONS,
            ComplianceType.AUTHORIZED,
        ]
        assert all(o.customer_id == "c1" and o.override_by == "user-1" for o in overrides)
        assert overrides[2].verification == "blocked"

    @pytest.mark.unit
    def test_collect_ignores_cleared_and_plain_fields(self, tracker):
        update = {"sms_override": None, "name": "Ana"}

        assert tracker.collect_overrides("c1", update, "user-1") == []

    @pytest.mark.unit
    def test_custom_registry(self):
        tracker = OverrideTracker(override_fields=(OverrideField("sms_override", ComplianceType.SMS),))
        update = {"sms_override": "ok", "authorized_override": "ok"}

        overrides = tracker.collect_overrides("c1", update, None)

        assert [o.compliance_type for o in overrides] == [ComplianceType.SMS]


class TestOverrideRecording:

    @pytest.mark.asyncio
    async def test_record_awaits_every_write(self, fake_db):
        tracker = OverrideTracker()
        overrides = tracker.collect_overrides(
            "c1", {"sms_override": "ok", "sanctions_check_override": "ok"}, "user-1"
        )

        created = await tracker.record(overrides)

        assert [c["compliance_type"] for c in created] == ["sms", "sanctions"]
        assert len(fake_db[COLLECTION_COMPLIANCE_OVERRIDES].documents) == 2

    @pytest.mark.asyncio
    async def test_background_writes_are_tracked_until_drained(self, fake_db):
        tracker = OverrideTracker()
        overrides = tracker.collect_overrides("c1", {"authorized_override": "ok"}, "user-1")

        tasks = tracker.record_in_background(overrides)
        assert tracker.pending_count == 1

        await tracker.drain()

        assert tracker.pending_count == 0
        assert all(task.done() for task in tasks)
        assert fake_db[COLLECTION_COMPLIANCE_OVERRIDES].documents[0]["compliance_type"] == "authorized"

    @pytest.mark.asyncio
    async def test_drain_without_pending_writes(self):
        await OverrideTracker().drain()
