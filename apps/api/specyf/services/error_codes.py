from enum import Enum


class ErrorCode(str, Enum):
    # events
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    EVENT_NOT_OPEN = "EVENT_NOT_OPEN"
    EVENT_FULL = "EVENT_FULL"
    EVENT_INVALID_TIMES = "EVENT_INVALID_TIMES"
    EVENT_INVALID_STATUS = "EVENT_INVALID_STATUS"
    EVENT_CAPACITY_BELOW_CONFIRMED = "EVENT_CAPACITY_BELOW_CONFIRMED"
    INVITATION_CODE_TAKEN = "INVITATION_CODE_TAKEN"
    NOT_EVENT_ORGANIZER = "NOT_EVENT_ORGANIZER"
    ORGANIZER_ROLE_REQUIRED = "ORGANIZER_ROLE_REQUIRED"
    PLAN_LIMIT_REACHED = "PLAN_LIMIT_REACHED"

    # guests
    GUEST_NOT_FOUND = "GUEST_NOT_FOUND"
    GUEST_ALREADY_INVITED = "GUEST_ALREADY_INVITED"
    GUEST_INVALID_STATUS = "GUEST_INVALID_STATUS"
    CSV_MISSING_HEADERS = "CSV_MISSING_HEADERS"
    CSV_EMPTY = "CSV_EMPTY"

    # communications
    NO_RECIPIENTS = "NO_RECIPIENTS"
    ANNOUNCEMENT_NOT_FOUND = "ANNOUNCEMENT_NOT_FOUND"

    # polls / schedule / messaging
    POLL_NOT_FOUND = "POLL_NOT_FOUND"
    POLL_CLOSED = "POLL_CLOSED"
    POLL_INVALID_OPTIONS = "POLL_INVALID_OPTIONS"
    POLL_INVALID_CHOICE = "POLL_INVALID_CHOICE"
    SUB_EVENT_NOT_FOUND = "SUB_EVENT_NOT_FOUND"
    MESSAGE_EMPTY = "MESSAGE_EMPTY"

    # billing
    PLAN_INVALID = "PLAN_INVALID"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_ALREADY_PAID = "ORDER_ALREADY_PAID"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    GATEWAY_ERROR = "GATEWAY_ERROR"
    SUBSCRIPTION_NOT_FOUND = "SUBSCRIPTION_NOT_FOUND"
    SUBSCRIPTION_NOT_ACTIVE = "SUBSCRIPTION_NOT_ACTIVE"

    # inquiries / admin
    CONTACT_MESSAGE_NOT_FOUND = "CONTACT_MESSAGE_NOT_FOUND"
    DEMO_REQUEST_NOT_FOUND = "DEMO_REQUEST_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # uploads
    INVALID_MIME_TYPE = "INVALID_MIME_TYPE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    EMPTY_FILE = "EMPTY_FILE"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"
