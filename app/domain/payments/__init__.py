from .colectiva_service import ColectivaPaymentsService, PaymentProviderError, colectiva_service

__all__ = ["ColectivaPaymentsService", "PaymentProviderError", "colectiva_service"]
