"""
Shipping-related database models.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, text, TIMESTAMP, Index
from sqlalchemy.dialects.postgresql import JSONB

from app.database import Base

UTC_NOW = text("timezone('utc', now())")


class ShippingRule(Base):
    """Business rule adjusting quoted shipping prices and lead times"""
    __tablename__ = "shipping_rules"
    __table_args__ = (
        Index("ix_shipping_rules_active_priority", "active", "priority"),
    )

    id = Column(Integer, primary_key=True, index=True)

    rule_type = Column(String(32), nullable=False)        # free_shipping / surcharge / production_days
    condition_type = Column(String(32), nullable=False)   # all / min_value / states / shipping_methods
    condition_value = Column(JSONB, nullable=True)        # {"min_value": .., "states": [..], "shipping_methods": [..]}

    # Surcharge parameters
    discount_type = Column(String(16), nullable=True)     # percentage / fixed
    discount_value = Column(Float, nullable=True)

    shipping_methods = Column(JSONB, nullable=True)       # array of service ids
    production_days = Column(Integer, nullable=True)

    priority = Column(Integer, nullable=False, default=0, server_default="0")
    active = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=UTC_NOW,
        nullable=False
    )
    updated_at = Column(
        TIMESTAMP(timezone=False),
        server_default=UTC_NOW,
        onupdate=UTC_NOW,
        nullable=False
    )

    def __repr__(self):
        return f"<ShippingRule {self.id}: {self.rule_type}/{self.condition_type} priority={self.priority}>"


class ShippingQuote(Base):
    """A saved shipping quote with the options shown to the customer"""
    __tablename__ = "shipping_quotes"

    id = Column(Integer, primary_key=True, index=True)

    environment = Column(String(16), nullable=False, default="production", server_default="production")
    destination_postal_code = Column(String(8), nullable=False, index=True)
    destination_state = Column(String(2), nullable=True)
    order_value = Column(Float, nullable=False, default=0.0)

    products_snapshot = Column(JSONB, nullable=False)   # parcels sent to the rate provider
    options = Column(JSONB, nullable=True)              # priced options after rules
    applied_rules = Column(JSONB, nullable=True)        # audit of rules that fired

    free_shipping_applied = Column(Boolean, nullable=False, default=False)
    free_shipping_rule_id = Column(Integer, nullable=True)
    production_days_added = Column(Integer, nullable=False, default=0)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=UTC_NOW,
        nullable=False
    )
    updated_at = Column(
        TIMESTAMP(timezone=False),
        server_default=UTC_NOW,
        onupdate=UTC_NOW,
        nullable=False
    )

    def __repr__(self):
        return f"<ShippingQuote {self.id}: {self.destination_postal_code} ({self.environment})>"
