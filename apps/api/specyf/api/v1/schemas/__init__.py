from specyf.api.v1.schemas.events import (
    DashboardSummaryOut,
    EventCreate,
    EventListOut,
    EventOut,
    EventStatsOut,
    EventUpdate,
    PublicEventOut,
)
from specyf.api.v1.schemas.guests import (
    BulkAddIn,
    BulkAddOut,
    BulkAddResult,
    CsvImportOut,
    GuestCreate,
    GuestListOut,
    GuestOut,
    GuestUpdate,
    InvitationOut,
    RSVPIn,
    RSVPOut,
)

__all__ = [
    "EventCreate",
    "EventUpdate",
    "EventOut",
    "EventListOut",
    "EventStatsOut",
    "PublicEventOut",
    "DashboardSummaryOut",
    "GuestCreate",
    "GuestUpdate",
    "GuestOut",
    "GuestListOut",
    "BulkAddIn",
    "BulkAddOut",
    "BulkAddResult",
    "CsvImportOut",
    "InvitationOut",
    "RSVPIn",
    "RSVPOut",
]
