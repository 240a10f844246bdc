"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """Actor roles carried in bearer tokens."""

    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"


class SlotStatusEnum(StrEnum):
    """Schedule slot status."""

    AVAILABLE = "available"
    BOOKED = "booked"
    CANCELLED = "cancelled"


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingEventTypeEnum(StrEnum):
    """Entries of the append-only booking event log."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"
    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"
    EXTENDED = "EXTENDED"


class LineItemTypeEnum(StrEnum):
    """Booking add-on kind."""

    EQUIPMENT = "equipment"
    EXTRA_SERVICE = "extra_service"


class EquipmentStatusEnum(StrEnum):
    """Derived equipment status."""

    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"


class DiscountTypeEnum(StrEnum):
    """Promotion discount kind."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PromotionAudienceEnum(StrEnum):
    """Which customers a promotion targets."""

    ALL = "all"
    FIRST_TIME = "first_time"
    RETURNING = "returning"


class PolicyTypeEnum(StrEnum):
    """Room policy kind."""

    CANCELLATION = "CANCELLATION"
    NO_SHOW = "NO_SHOW"


class PolicyCategoryEnum(StrEnum):
    """Room policy strictness tier."""

    FLEXIBLE = "FLEXIBLE"
    STANDARD = "STANDARD"
    MODERATE = "MODERATE"
    PREMIUM = "PREMIUM"
    STRICT = "STRICT"


class NoShowChargeTypeEnum(StrEnum):
    """Rule family for no-show charges."""

    FULL_CHARGE = "FULL_CHARGE"
    PARTIAL_CHARGE = "PARTIAL_CHARGE"
    GRACE_PERIOD = "GRACE_PERIOD"
    FORGIVENESS = "FORGIVENESS"


class NotificationKindEnum(StrEnum):
    """Notification category shown to the customer."""

    CONFIRMATION = "confirmation"
    INFO = "info"
    WARNING = "warning"


class NotificationStatusEnum(StrEnum):
    """Notification delivery status."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
