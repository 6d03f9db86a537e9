"""Custom exceptions for the marketplace application."""


class MarketplaceError(Exception):
    """Base exception for all application errors."""
    kind = 'InternalError'

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['kind'] = self.kind
        rv['status'] = 'error'
        return rv


class BusinessLogicError(MarketplaceError):
    """Exception raised for business logic violations."""
    kind = 'ValidationError'

    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(MarketplaceError):
    """Exception raised when a resource is not found."""
    kind = 'NotFound'

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class UnauthenticatedError(MarketplaceError):
    """Raised when a request carries no valid identity."""
    kind = 'Unauthenticated'

    def __init__(self, message="Authentication required"):
        super().__init__(message, 401)


class ForbiddenError(MarketplaceError):
    """Raised when a user lacks permission for an action."""
    kind = 'Forbidden'

    def __init__(self, message="Forbidden"):
        super().__init__(message, 403)


# Order placement

class EmptyCartError(BusinessLogicError):
    kind = 'EmptyCart'

    def __init__(self, message="Order must contain at least one item"):
        super().__init__(message)


class MissingAddressError(BusinessLogicError):
    kind = 'MissingAddress'

    def __init__(self, message="Delivery address is required"):
        super().__init__(message)


class InvalidPriceError(BusinessLogicError):
    kind = 'InvalidPrice'

    def __init__(self, message="Business price must be greater than 0"):
        super().__init__(message)


class ProductUnavailableError(BusinessLogicError):
    """Product missing, inactive, or owned by an unverified business."""
    kind = 'ProductUnavailable'

    def __init__(self, product_id):
        super().__init__(
            f"Product {product_id} not found or not available",
            payload={'product_id': product_id}
        )
        self.product_id = product_id


class BelowMinimumOrderError(BusinessLogicError):
    kind = 'BelowMinimumOrder'

    def __init__(self, product_id, product_name, minimum, requested):
        super().__init__(
            f"Minimum quantity for {product_name} is {minimum}",
            payload={'product_id': product_id, 'minimum': minimum, 'requested': requested}
        )
        self.product_id = product_id


class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    kind = 'InsufficientStock'

    def __init__(self, product_id, product_name, requested, available=None):
        if available is None:
            message = f"Insufficient stock for {product_name}"
        else:
            message = f"Insufficient stock for {product_name}. Available: {available}"
        payload = {'product_id': product_id, 'requested': requested}
        if available is not None:
            payload['available'] = available
        super().__init__(message, status_code=409, payload=payload)
        self.product_id = product_id
        # No count is known when the conditional decrement at commit fails
        self.at_commit = available is None


class InvalidStatusTransitionError(BusinessLogicError):
    kind = 'InvalidStatusTransition'

    def __init__(self, current, requested):
        super().__init__(
            f"Cannot move order from {current} to {requested}",
            payload={'current_status': current, 'requested_status': requested}
        )


class OrderProcessingFailedError(MarketplaceError):
    """Commit phase failed; every write for the order was rolled back."""
    kind = 'OrderProcessingFailed'

    def __init__(self, message="Failed to process order"):
        super().__init__(message, 500)
