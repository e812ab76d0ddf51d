# audit/tests/test_event_log.py

import uuid
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from audit.models import AuditEvent, EventType
from audit.services.event_log import MAX_QUERY_LIMIT, EventLog

User = get_user_model()


class EventLogTests(TestCase):
    """
    GUARANTEES:
    - append never raises; failures return None
    - payloads are stored JSON-safe
    - events are append-only
    - query is newest first with a capped limit
    """

    def setUp(self):
        self.events = EventLog()

    def test_append_stores_json_safe_payload(self):
        batch_id = uuid.uuid4()
        event_id = self.events.append(
            EventType.STOCK_SOLD,
            {"batch_id": batch_id, "price": Decimal("12.50"), "when": timezone.localdate()},
            "Stock sold",
        )

        event = AuditEvent.objects.get(pk=event_id)
        self.assertEqual(event.payload["batch_id"], str(batch_id))
        self.assertEqual(event.payload["price"], "12.50")
        self.assertEqual(event.payload["when"], timezone.localdate().isoformat())
        self.assertEqual(event.source, "medstock")
        self.assertEqual(event.description, "Stock sold")

    def test_append_failure_is_swallowed_and_logged(self):
        with mock.patch.object(AuditEvent.objects, "create", side_effect=DatabaseError("db down")):
            with self.assertLogs("audit", level="ERROR"):
                result = self.events.append(EventType.SYSTEM_ERROR, {"error": "x"})

        self.assertIsNone(result)
        # the surrounding transaction is still usable
        self.assertIsNotNone(self.events.append(EventType.SYSTEM_ERROR, {"error": "y"}))

    def test_events_are_immutable(self):
        event = AuditEvent.objects.get(pk=self.events.append(EventType.REPORT_GENERATED, {}))

        event.description = "tampered"
        with self.assertRaises(RuntimeError):
            event.save()
        with self.assertRaises(RuntimeError):
            event.delete()

    def test_query_orders_newest_first_and_filters(self):
        now = timezone.now()
        for minutes, event_type in [(30, EventType.BILL_CREATED), (20, EventType.STOCK_SOLD), (10, EventType.BILL_CREATED)]:
            AuditEvent.objects.create(type=event_type, timestamp=now - timedelta(minutes=minutes))

        bills = self.events.query(event_type=EventType.BILL_CREATED)
        self.assertEqual(len(bills), 2)
        self.assertGreater(bills[0].timestamp, bills[1].timestamp)

        window = self.events.query(start=now - timedelta(minutes=25), end=now - timedelta(minutes=10))
        self.assertEqual([e.type for e in window], [EventType.STOCK_SOLD])

    def test_query_limit_is_capped(self):
        AuditEvent.objects.create(type=EventType.REPORT_GENERATED)
        AuditEvent.objects.create(type=EventType.REPORT_GENERATED)

        self.assertEqual(len(self.events.query(limit=1)), 1)
        self.assertEqual(len(self.events.query(limit=0)), 1)
        self.assertEqual(len(self.events.query(limit="junk")), 2)
        self.assertEqual(MAX_QUERY_LIMIT, 500)

    def test_wrappers_set_type_and_description(self):
        self.events.stock_low(
            batch_id=uuid.uuid4(),
            batch_no="B1",
            product_name="ORS",
            quantity=3,
            threshold=10,
        )
        event = AuditEvent.objects.get(type=EventType.STOCK_LOW)

        self.assertEqual(event.payload["remaining_quantity"], 3)
        self.assertIn("ORS", event.description)


class AuditEventApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.auditor = User.objects.create_user(username="auditor", password="pass123", role="audit")
        self.pharmacist = User.objects.create_user(username="pharma", password="pass123", role="pharmacist")
        EventLog().append(EventType.BILL_CREATED, {"bill_no": "BILL-1"}, "Bill created: BILL-1")
        EventLog().append(EventType.STOCK_SOLD, {"bill_no": "BILL-1"}, "Stock sold")

    def test_auditor_lists_events(self):
        self.client.force_authenticate(self.auditor)

        res = self.client.get("/api/audit/events/", {"type": "bill_created"})

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 1)
        self.assertEqual(res.data["results"][0]["type"], EventType.BILL_CREATED)

    def test_date_bounds_accept_plain_dates(self):
        self.client.force_authenticate(self.auditor)
        today = timezone.localdate()

        res = self.client.get(
            "/api/audit/events/",
            {"start": today.isoformat(), "end": (today + timedelta(days=1)).isoformat()},
        )

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["count"], 2)

    def test_invalid_filters_use_error_envelope(self):
        self.client.force_authenticate(self.auditor)

        res = self.client.get("/api/audit/events/", {"type": "NOPE"})
        self.assertEqual(res.status_code, 400)
        self.assertEqual(res.data["error"]["code"], "VALIDATION_ERROR")

        res = self.client.get("/api/audit/events/", {"start": "yesterday"})
        self.assertEqual(res.status_code, 400)

    def test_pharmacist_cannot_read_audit_log(self):
        self.client.force_authenticate(self.pharmacist)
        self.assertEqual(self.client.get("/api/audit/events/").status_code, 403)
