"""Parsing for guest lists pasted into the dashboard or uploaded as CSV."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass

from specyf.models.guest import GuestStatus
from specyf.services.error_codes import ErrorCode
from specyf.services.exceptions import ValidationError

REQUIRED_HEADERS = ("name", "email")
CSV_TEMPLATE = (
    "Name,Email,Status\n"
    "John Doe,john@example.com,confirmed\n"
    "Jane Smith,jane@example.com,pending\n"
)


@dataclass(frozen=True)
class ParsedGuest:
    name: str
    email: str
    status: GuestStatus = GuestStatus.PENDING


def parse_status(raw: str | None) -> GuestStatus:
    """Unknown or missing statuses fall back to pending."""
    try:
        return GuestStatus((raw or "").strip().lower())
    except ValueError:
        return GuestStatus.PENDING


def _make_guest(name: str | None, email: str | None, status: str | None) -> ParsedGuest | None:
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email:
        return None
    return ParsedGuest(name=name, email=email, status=parse_status(status))


def parse_bulk_lines(text: str) -> list[ParsedGuest]:
    """Parse ``name, email[, status]`` lines; rows missing a name or email are dropped."""
    guests: list[ParsedGuest] = []
    for line in text.strip().splitlines():
        if not line.strip():
            continue
        parts = [part.strip() for part in line.split(",")]
        parts += [""] * (3 - len(parts))
        guest = _make_guest(parts[0], parts[1], parts[2] or None)
        if guest:
            guests.append(guest)
    return guests


def parse_guest_csv(content: str) -> list[ParsedGuest]:
    """Parse a CSV with a header row containing at least Name and Email."""
    content = content.lstrip("\ufeff")
    if not content.strip():
        raise ValidationError(ErrorCode.CSV_EMPTY.value, "CSV file is empty")

    reader = csv.reader(io.StringIO(content))
    header_row = next(reader, None) or []
    headers = [h.strip().lower() for h in header_row]

    missing = [h for h in REQUIRED_HEADERS if h not in headers]
    if missing:
        raise ValidationError(
            ErrorCode.CSV_MISSING_HEADERS.value,
            f"Missing required headers: {', '.join(missing)}",
        )

    name_idx = headers.index("name")
    email_idx = headers.index("email")
    status_idx = headers.index("status") if "status" in headers else None

    guests: list[ParsedGuest] = []
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue

        def cell(idx: int | None) -> str | None:
            if idx is None or idx >= len(row):
                return None
            return row[idx]

        guest = _make_guest(cell(name_idx), cell(email_idx), cell(status_idx))
        if guest:
            guests.append(guest)
    return guests


def dedupe(guests: list[ParsedGuest]) -> list[ParsedGuest]:
    """Keep the first occurrence of each email."""
    seen: set[str] = set()
    unique: list[ParsedGuest] = []
    for guest in guests:
        if guest.email in seen:
            continue
        seen.add(guest.email)
        unique.append(guest)
    return unique
