class ServiceError(Exception):
    status = 400

    def __init__(self, code="SERVICE_ERROR", message="Service error", details=None, status=None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status is not None:
            self.status = status
        super().__init__(message)


class ValidationError(ServiceError):
    def __init__(self, message="Invalid input", details=None, code="VALIDATION_ERROR", status=400):
        super().__init__(code, message, details, status)


class InvalidCredentials(ServiceError):
    def __init__(self, message="Invalid credentials"):
        super().__init__("INVALID_CREDENTIALS", message, status=400)


class DuplicateUser(ServiceError):
    def __init__(self, message="User already exists", details=None):
        super().__init__("DUPLICATE_USER", message, details, status=409)


class NotFound(ServiceError):
    def __init__(self, message="Resource not found"):
        super().__init__("NOT_FOUND", message, status=404)


class TicketUnavailable(ServiceError):
    def __init__(self, ticket_id=None):
        super().__init__(
            "TICKET_UNAVAILABLE",
            "Ticket not available",
            {"ticket_id": ticket_id} if ticket_id is not None else None,
            status=409,
        )


class PaymentProviderError(ServiceError):
    def __init__(self, message="Payment provider error", details=None):
        super().__init__("PAYMENT_PROVIDER_ERROR", message, details, status=502)


class StorageError(ServiceError):
    def __init__(self, message="Storage temporarily unavailable"):
        super().__init__("STORAGE_ERROR", message, status=503)


class PaymentNotFound(NotFound):
    def __init__(self, reference=None):
        super().__init__("Payment not found")
        self.details = {"reference": reference} if reference else {}
