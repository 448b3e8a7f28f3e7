from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from app.core.errors import StoreError
from app.models.domain import (
    AuditEvent,
    BookingRecord,
    BookingStatus,
    Destination,
    FeatureControl,
    PaymentRecord,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

BOOKING_COLUMNS = (
    "id,booking_reference,customer_name,customer_email,customer_phone,"
    "destination_id,total_amount,currency,booking_status,payment_type,payment_id,"
    "quick_payment_notes,is_quick_payment,source,created_at"
)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _payment_from_row(row: Dict[str, Any]) -> PaymentRecord:
    try:
        return PaymentRecord(
            id=str(row["id"]),
            razorpay_order_id=row["razorpay_order_id"],
            booking_id=str(row["booking_id"]),
            amount=float(row.get("amount") or 0),
            currency=row.get("currency") or "INR",
            payment_status=PaymentStatus(row["payment_status"]),
            customer_email=row.get("customer_email") or "",
            customer_phone=row.get("customer_phone"),
            razorpay_payment_id=row.get("razorpay_payment_id"),
            razorpay_signature=row.get("razorpay_signature"),
            payment_captured_at=_parse_timestamp(row.get("payment_captured_at")),
            created_at=_parse_timestamp(row.get("created_at")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("Malformed payment row id=%s: %s", row.get("id"), exc)
        raise StoreError() from exc


def _booking_from_row(row: Dict[str, Any]) -> BookingRecord:
    try:
        return BookingRecord(
            id=str(row["id"]),
            booking_reference=row.get("booking_reference") or "",
            customer_name=row.get("customer_name") or "",
            customer_email=row.get("customer_email") or "",
            customer_phone=row.get("customer_phone") or "",
            destination_id=int(row["destination_id"]),
            total_amount=float(row.get("total_amount") or 0),
            currency=row.get("currency") or "INR",
            booking_status=BookingStatus(row["booking_status"]),
            payment_type=row.get("payment_type") or "",
            payment_id=str(row["payment_id"]) if row.get("payment_id") else None,
            quick_payment_notes=row.get("quick_payment_notes"),
            is_quick_payment=bool(row.get("is_quick_payment", True)),
            source=row.get("source") or "",
            created_at=_parse_timestamp(row.get("created_at")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("Malformed booking row id=%s: %s", row.get("id"), exc)
        raise StoreError() from exc


def _destination_from_row(row: Dict[str, Any]) -> Destination:
    try:
        return Destination(
            id=int(row["id"]),
            name=row.get("name") or "",
            country=row.get("country") or "",
            slug=row.get("slug") or "",
            status=row.get("status") or "published",
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.error("Malformed destination row id=%s: %s", row.get("id"), exc)
        raise StoreError() from exc


class SupabaseRepository:
    """
    BookingRepository backed by Supabase's PostgREST API.

    Uses the service-role key, so row level security is bypassed; this class
    must only ever run server-side.
    """

    def __init__(
        self,
        url: str,
        service_role_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
                "Content-Type": "application/json",
            }
        )

    def _request(
        self,
        method: str,
        table: str,
        params: Dict[str, str],
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        headers = {"Prefer": prefer} if prefer else {}
        try:
            resp = self.session.request(
                method,
                f"{self.base_url}/{table}",
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Supabase %s %s failed (params=%s): %s", method, table, params, exc)
            raise StoreError() from exc
        if not resp.content:
            return []
        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Supabase %s %s returned a non-JSON body: %s", method, table, exc)
            raise StoreError() from exc
        return data if isinstance(data, list) else [data]

    def _select_one(self, table: str, filters: Dict[str, str], columns: str = "*"):
        params = {"select": columns, "limit": "1", **filters}
        rows = self._request("GET", table, params)
        return rows[0] if rows else None

    def _insert(self, table: str, values: Dict[str, Any]) -> Dict[str, Any]:
        rows = self._request("POST", table, {}, json=values, prefer="return=representation")
        if not rows:
            logger.error("Supabase insert into %s returned no row", table)
            raise StoreError()
        return rows[0]

    def get_payment_by_order_id(self, order_id: str) -> Optional[PaymentRecord]:
        row = self._select_one("payments", {"razorpay_order_id": f"eq.{order_id}"})
        return _payment_from_row(row) if row else None

    def get_payment_by_gateway_payment_id(self, payment_id: str) -> Optional[PaymentRecord]:
        row = self._select_one("payments", {"razorpay_payment_id": f"eq.{payment_id}"})
        return _payment_from_row(row) if row else None

    def get_payment_by_booking_id(self, booking_id: str) -> Optional[PaymentRecord]:
        row = self._select_one("payments", {"booking_id": f"eq.{booking_id}"})
        return _payment_from_row(row) if row else None

    def capture_payment(
        self,
        record_id: str,
        gateway_payment_id: str,
        signature: str,
        captured_at: datetime,
    ) -> Optional[PaymentRecord]:
        # the status filter makes this a compare-and-swap on the row
        rows = self._request(
            "PATCH",
            "payments",
            {"id": f"eq.{record_id}", "payment_status": f"neq.{PaymentStatus.captured.value}"},
            json={
                "razorpay_payment_id": gateway_payment_id,
                "razorpay_signature": signature,
                "payment_status": PaymentStatus.captured.value,
                "payment_captured_at": captured_at.isoformat(),
            },
            prefer="return=representation",
        )
        return _payment_from_row(rows[0]) if rows else None

    def confirm_booking(self, booking_id: str, payment_record_id: str) -> Optional[BookingRecord]:
        rows = self._request(
            "PATCH",
            "bookings",
            {"id": f"eq.{booking_id}", "select": BOOKING_COLUMNS},
            json={
                "booking_status": BookingStatus.confirmed.value,
                "payment_id": payment_record_id,
            },
            prefer="return=representation",
        )
        return _booking_from_row(rows[0]) if rows else None

    def get_booking(self, booking_id: str) -> Optional[BookingRecord]:
        row = self._select_one("bookings", {"id": f"eq.{booking_id}"}, BOOKING_COLUMNS)
        return _booking_from_row(row) if row else None

    def booking_reference_exists(self, reference: str) -> bool:
        row = self._select_one("bookings", {"booking_reference": f"eq.{reference}"}, "id")
        return row is not None

    def create_booking(self, booking: BookingRecord) -> BookingRecord:
        values = {
            "customer_name": booking.customer_name,
            "customer_email": booking.customer_email,
            "customer_phone": booking.customer_phone,
            "destination_id": booking.destination_id,
            "booking_reference": booking.booking_reference,
            "total_amount": booking.total_amount,
            "currency": booking.currency,
            "booking_status": booking.booking_status.value,
            "payment_type": booking.payment_type,
            "is_quick_payment": booking.is_quick_payment,
            "source": booking.source,
        }
        if booking.id:
            values["id"] = booking.id
        if booking.quick_payment_notes:
            values["quick_payment_notes"] = booking.quick_payment_notes
        return _booking_from_row(self._insert("bookings", values))

    def create_payment(self, payment: PaymentRecord) -> PaymentRecord:
        values = {
            "razorpay_order_id": payment.razorpay_order_id,
            "amount": payment.amount,
            "currency": payment.currency,
            "customer_email": payment.customer_email,
            "customer_phone": payment.customer_phone,
            "booking_id": payment.booking_id,
            "payment_status": payment.payment_status.value,
        }
        if payment.id:
            values["id"] = payment.id
        return _payment_from_row(self._insert("payments", values))

    def get_destination(self, destination_id: int) -> Optional[Destination]:
        row = self._select_one(
            "destinations", {"id": f"eq.{destination_id}"}, "id,name,slug,country,status"
        )
        return _destination_from_row(row) if row else None

    def list_published_destinations(self) -> List[Destination]:
        rows = self._request(
            "GET",
            "destinations",
            {"select": "id,name,slug,country,status", "status": "eq.published", "order": "name"},
        )
        return [_destination_from_row(row) for row in rows]

    def get_feature_control(self, feature_name: str) -> Optional[FeatureControl]:
        row = self._select_one(
            "admin_controls",
            {"feature_name": f"eq.{feature_name}"},
            "feature_name,is_enabled,disabled_reason",
        )
        if not row:
            return None
        return FeatureControl(
            feature_name=row.get("feature_name") or feature_name,
            is_enabled=bool(row.get("is_enabled")),
            disabled_reason=row.get("disabled_reason"),
        )

    def log_audit_event(self, event: AuditEvent) -> None:
        values = asdict(event)
        values["event_type"] = event.event_type.value
        self._request("POST", "payment_audit_log", {}, json=values, prefer="return=minimal")
