from .shipping import ShippingRule, ShippingQuote
from .system_setting import SystemSetting

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'ShippingRule',
    'ShippingQuote',
    'SystemSetting',
]
