class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class ShippingRuleError(BaseServiceError):
    """Base exception for shipping rule errors."""
    pass

class ShippingRuleNotFoundError(ShippingRuleError):
    """Raised when a shipping rule is not found."""
    pass

class ShippingRuleValidationError(ShippingRuleError):
    """Raised when a shipping rule fails validation (e.g. disabled rule types)."""
    pass

class SettingsError(BaseServiceError):
    """Raised when a system setting cannot be read or written."""
    pass

class ShippingQuoteError(BaseServiceError):
    """Base exception for shipping quote errors."""
    pass

class ShippingQuoteNotFoundError(ShippingQuoteError):
    """Raised when a saved shipping quote is not found."""
    pass

class ShippingQuoteValidationError(ShippingQuoteError):
    """Raised when quote input (postal codes, parcels) is invalid."""
    pass

class NoShippingOptionsError(ShippingQuoteError):
    """Raised when the rate provider returns no usable options."""
    pass

class RateProviderError(BaseServiceError):
    """Raised when the shipping rate provider fails."""
    pass

class DatabaseError(Exception):
    """Exception raised for database-related errors."""
    pass
