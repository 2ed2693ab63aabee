"""
Shared enums and constants used across the application.
"""

from enum import Enum


class ShippingRuleType(str, Enum):
    """Shipping rule types stored in shipping_rules.rule_type"""
    FREE_SHIPPING = "free_shipping"
    SURCHARGE = "surcharge"
    PRODUCTION_DAYS = "production_days"
    DISCOUNT = "discount"  # Historical; rejected on write and ignored by the engine

    @property
    def is_enabled(self) -> bool:
        return self is not ShippingRuleType.DISCOUNT


class ConditionType(str, Enum):
    """Legacy hint for which predicate a rule uses"""
    ALL = "all"
    MIN_VALUE = "min_value"
    STATES = "states"
    SHIPPING_METHODS = "shipping_methods"


class AdjustmentType(str, Enum):
    """How a surcharge value is interpreted"""
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class IntegrationEnvironment(str, Enum):
    PRODUCTION = "production"
    SANDBOX = "sandbox"


# system_settings keys
PRODUCTION_DAYS_SETTING = "production_days"
