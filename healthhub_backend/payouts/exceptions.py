"""Payout exceptions."""

from healthhub_backend.core.exceptions import InvalidData, NotFound, ServiceError


class PayoutError(ServiceError):
    """Base exception for payout ledger errors."""


class InvalidPayoutData(InvalidData, PayoutError):
    pass


class PayoutNotFound(NotFound, PayoutError):
    default_message = 'Payout not found'


class PayoutDoctorNotFound(NotFound, PayoutError):
    default_message = 'Doctor not found'


class InvalidPaymentMethod(PayoutError):
    code = 'INVALID_PAYMENT_METHOD'
    default_message = 'Payment method must be CASH, ONLINE or CHEQUE'


class AlreadyPaid(PayoutError):
    code = 'ALREADY_PAID'
    status_code = 409
    default_message = 'Payout has already been marked as paid'


class PayoutImmutable(PayoutError):
    """A paid ledger row was about to be modified."""

    code = 'PAYOUT_IMMUTABLE'
    status_code = 409
    default_message = 'Paid payouts cannot be modified'
