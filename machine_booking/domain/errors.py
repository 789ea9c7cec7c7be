"""Domain exceptions for the machine booking system."""

from datetime import datetime


class DomainError(Exception):
    """Base class for every domain error."""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# === Validation errors ===


class ValidationError(DomainError):
    """Invalid input data."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Validation failed on '{field}': {message}",
            code="VALIDATION_ERROR",
        )
        self.field = field


class InvalidBookingDurationError(DomainError):
    """Requested slot is shorter or longer than the allowed booking window."""

    def __init__(self, duration_minutes: int, min_minutes: int, max_minutes: int):
        if duration_minutes < min_minutes:
            message = f"Minimum booking duration is {min_minutes} minutes (got {duration_minutes})"
        else:
            message = f"Maximum booking duration is {max_minutes} minutes (got {duration_minutes})"
        super().__init__(message=message, code="INVALID_BOOKING_DURATION")
        self.duration_minutes = duration_minutes
        self.min_minutes = min_minutes
        self.max_minutes = max_minutes


class MachineNotBookableError(DomainError):
    """The machine is not in a bookable state (maintenance, unavailable...)."""

    def __init__(self, machine_id: str, status: str):
        super().__init__(
            message=f"Machine {machine_id} is currently not bookable: status '{status}'",
            code="MACHINE_NOT_BOOKABLE",
        )
        self.machine_id = machine_id
        self.status = status


# === Availability errors ===


class SlotUnavailableError(DomainError):
    """The requested slot overlaps a confirmed reservation."""

    def __init__(self, machine_id: str, start: datetime, end: datetime):
        super().__init__(
            message=(
                f"Machine {machine_id} is not available for "
                f"{start.isoformat()} -> {end.isoformat()}"
            ),
            code="SLOT_UNAVAILABLE",
        )
        self.machine_id = machine_id
        self.start = start
        self.end = end


class MachineLockTimeoutError(DomainError):
    """Another booking attempt holds the machine lock for too long."""

    def __init__(self, machine_id: str, wait_seconds: float):
        super().__init__(
            message=f"Timed out after {wait_seconds}s waiting for the lock on machine {machine_id}",
            code="MACHINE_LOCK_TIMEOUT",
        )
        self.machine_id = machine_id
        self.wait_seconds = wait_seconds


# === Not found errors ===


class MachineNotFoundError(DomainError):
    def __init__(self, machine_id: str):
        super().__init__(message=f"Machine not found: {machine_id}", code="MACHINE_NOT_FOUND")
        self.machine_id = machine_id


class OrderNotFoundError(DomainError):
    def __init__(self, order_id: str):
        super().__init__(message=f"Order not found: {order_id}", code="ORDER_NOT_FOUND")
        self.order_id = order_id


class PaymentNotFoundError(DomainError):
    def __init__(self, payment_id: str):
        super().__init__(message=f"Payment not found: {payment_id}", code="PAYMENT_NOT_FOUND")
        self.payment_id = payment_id


class VoucherNotFoundError(DomainError):
    def __init__(self, voucher_id: str):
        super().__init__(message=f"Voucher not found: {voucher_id}", code="VOUCHER_NOT_FOUND")
        self.voucher_id = voucher_id


# === Payment errors ===


class PaymentAlreadyProcessedError(DomainError):
    """The payment already left the pending state."""

    def __init__(self, payment_id: str, current_status: str):
        super().__init__(
            message=f"Payment {payment_id} was already processed with status: {current_status}",
            code="PAYMENT_ALREADY_PROCESSED",
        )
        self.payment_id = payment_id
        self.current_status = current_status


# === Reward errors ===


class NoAvailableTokensError(DomainError):
    def __init__(self, user_id: str):
        super().__init__(
            message=f"No available tokens for user {user_id}",
            code="NO_AVAILABLE_TOKENS",
        )
        self.user_id = user_id
