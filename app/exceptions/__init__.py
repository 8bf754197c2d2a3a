"""Custom exceptions for the pricing engine and storefront API."""

class PricingError(Exception):
    """Base exception for all conditions surfaced to the caller."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        rv['error'] = self.error_code
        return rv

    @property
    def error_code(self):
        return 'internal_error'

class InvalidProductError(PricingError):
    """Raised when a product cannot be priced at all (e.g. no base price)."""
    def __init__(self, message, product_id=None):
        super().__init__(message, 422, {'product_id': product_id})
        self.product_id = product_id

    @property
    def error_code(self):
        return 'invalid_product'

class OutOfRangeError(PricingError):
    """Raised when no quantity satisfies the MOQ and stock/max bounds."""
    def __init__(self, product_name, min_quantity, max_quantity):
        message = (
            f"{product_name} is unavailable at this quantity: minimum {min_quantity}, "
            f"available {max_quantity}"
        )
        super().__init__(message, 409, {'min_quantity': min_quantity, 'max_quantity': max_quantity})
        self.min_quantity = min_quantity
        self.max_quantity = max_quantity

    @property
    def error_code(self):
        return 'out_of_range'

class IncompleteSelectionError(PricingError):
    """Raised when a configurable product is added without a complete selection."""
    def __init__(self, product_name, missing=None, message=None):
        missing = list(missing or [])
        if message is None:
            message = f"Please choose {', '.join(missing)} for {product_name}"
        super().__init__(message, 400, {'missing': missing})
        self.missing = missing

    @property
    def error_code(self):
        return 'incomplete_selection'

class NotFoundError(PricingError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

    @property
    def error_code(self):
        return 'not_found'
