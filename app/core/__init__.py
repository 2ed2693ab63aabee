"""
Core module exports.
"""
from .enums import (
    ShippingRuleType,
    ConditionType,
    AdjustmentType,
    IntegrationEnvironment,
)

from .exceptions import (
    BaseServiceError,
    ShippingRuleError,
    ShippingRuleNotFoundError,
    ShippingRuleValidationError,
    SettingsError,
    ShippingQuoteError,
    ShippingQuoteNotFoundError,
    ShippingQuoteValidationError,
    NoShippingOptionsError,
    RateProviderError,
    DatabaseError,
)

from .utils import (
    model_to_schema,
    models_to_schemas,
)
