class OrderflowError(Exception):
    """Base exception for order fulfillment errors.

    Every subclass carries the HTTP status it is reported with, so services
    can raise them without knowing about the web layer.
    """

    status_code = 500
    default_message = "An error occurred while processing the order"

    def __init__(self, message=None, code=None, details=None):
        """Initialize the exception.

        Args:
            message: Human readable error message
            code: Optional stable error code
            details: Additional error details (e.g. offending items)
        """
        self.message = message or self.default_message
        self.code = code
        self.details = details
        super().__init__(self.message)

    @property
    def kind(self):
        return self.__class__.__name__

    def __str__(self):
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self):
        """Convert the exception to a response body."""
        error_dict = {
            'error': self.kind,
            'message': self.message,
        }

        if self.code:
            error_dict['code'] = self.code

        if self.details:
            error_dict['details'] = self.details

        return error_dict


class NotFound(OrderflowError):
    """Order, order item or request does not exist."""
    status_code = 404
    default_message = "Resource not found"


class Unauthorized(OrderflowError):
    """No usable identity on the request."""
    status_code = 401
    default_message = "Authentication required"


class Forbidden(OrderflowError):
    """Identity lacks the ownership or role required."""
    status_code = 403
    default_message = "Forbidden"


class InvalidTransition(OrderflowError):
    """Status change not allowed from the current state."""
    status_code = 400
    default_message = "Status transition not allowed"


class PolicyViolation(OrderflowError):
    """Business rule rejects the request (non-returnable item, duplicate request)."""
    status_code = 400
    default_message = "Request violates order policy"


class ValidationError(OrderflowError):
    status_code = 422
    default_message = "Validation failed"


class TransactionFailed(OrderflowError):
    """The store rejected the unit of work; nothing was committed."""
    status_code = 500
    default_message = "Failed to commit changes"
