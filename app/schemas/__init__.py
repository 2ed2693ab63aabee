"""
Schema exports for the application.
"""

# Base schemas
from .base import BaseSchema, TimestampedSchema

# Shipping schemas
from .shipping import (
    ShippingOption,
    RuleConditions,
    ShippingRuleCreate,
    ShippingRuleUpdate,
    ShippingRuleRead,
    AppliedRule,
    ShippingRulesResult,
    RulePreviewRequest,
    ProductionDaysSetting,
    SystemSettingRead,
    QuoteParcel,
    ShippingQuoteRequest,
    ShippingQuoteRead,
)
