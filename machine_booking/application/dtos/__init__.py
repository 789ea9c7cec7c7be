from machine_booking.application.dtos.booking_dto import BookingResult, SettlementResult

__all__ = ["BookingResult", "SettlementResult"]
