"""
Schemas for shipping options, shipping rules and saved quotes.

Numeric fields coming from the rate provider or the admin are validated here,
so the rule engine only ever sees finite prices and thresholds.
"""

import json
import math
from typing import Optional, List, Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import ShippingRuleType, ConditionType, AdjustmentType, IntegrationEnvironment
from app.schemas.base import BaseSchema, TimestampedSchema


def _load_json(v):
    """JSON columns may come back as strings depending on the driver"""
    if isinstance(v, str):
        if not v.strip():
            return None
        try:
            return json.loads(v)
        except json.JSONDecodeError:
            raise ValueError(f'Invalid JSON value: {v}')
    return v


# --- Shipping options (rate provider output) ---

class DeliveryRange(BaseModel):
    min: int
    max: int


class ShippingCompany(BaseModel):
    id: Optional[int] = None
    name: str = ""


class ShippingOption(BaseSchema):
    """A priced delivery method returned by the rate provider"""
    id: int
    name: str = ""
    company: Optional[ShippingCompany] = None
    price: str
    currency: str = "R$"
    delivery_time: Optional[int] = None
    delivery_range: Optional[DeliveryRange] = None
    packages: Optional[int] = None
    original_price: Optional[float] = None  # Price before free shipping, for display
    estimated_delivery_date: Optional[str] = None  # dd/mm/yyyy, set on saved quotes

    @field_validator('price', mode='before')
    @classmethod
    def validate_price(cls, v):
        if v is None or v == '':
            raise ValueError('Price is required')
        if isinstance(v, bool):
            raise ValueError(f'Price must be a valid number, got: {v}')
        try:
            price = float(v)
        except (ValueError, TypeError):
            raise ValueError(f'Price must be a valid number, got: {v}')
        if not math.isfinite(price):
            raise ValueError(f'Price must be a finite number, got: {v}')
        return v.strip() if isinstance(v, str) else str(price)

    @property
    def price_value(self) -> float:
        return float(self.price)


# --- Shipping rules ---

class RuleConditions(BaseModel):
    """
    Condition bag stored in shipping_rules.condition_value.

    A key being present activates that predicate, even when its value is
    null, so presence is read from ``model_fields_set`` rather than from the
    values themselves. Unknown keys are kept so a bag holding only legacy keys
    is not mistaken for an empty one.
    """
    model_config = ConfigDict(extra="allow")

    min_value: Optional[float] = Field(default=None, allow_inf_nan=False)
    states: Optional[List[str]] = None
    shipping_methods: Optional[List[int]] = None

    @field_validator('min_value', mode='before')
    @classmethod
    def validate_min_value(cls, v):
        if v is None:
            return None
        try:
            return float(v)
        except (ValueError, TypeError):
            raise ValueError(f'min_value must be a valid number, got: {v}')

    @field_validator('states', mode='before')
    @classmethod
    def normalize_states(cls, v):
        if v is None:
            return None
        if isinstance(v, str):
            v = [s for s in v.split(',')]
        return [str(s).strip().upper() for s in v if str(s).strip()]

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set and not self.model_extra

    @property
    def has_min_value(self) -> bool:
        return 'min_value' in self.model_fields_set


class ShippingRuleBase(BaseSchema):
    rule_type: ShippingRuleType
    condition_type: ConditionType
    condition_value: Optional[RuleConditions] = None
    discount_type: Optional[AdjustmentType] = None
    discount_value: Optional[float] = Field(default=None, allow_inf_nan=False)
    shipping_methods: Optional[List[int]] = None
    production_days: Optional[int] = None
    priority: int = 0
    active: bool = True

    @field_validator('condition_value', 'shipping_methods', mode='before')
    @classmethod
    def parse_json_columns(cls, v):
        return _load_json(v)


class ShippingRuleCreate(ShippingRuleBase):
    discount_value: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    production_days: Optional[int] = Field(default=None, ge=0)


class ShippingRuleUpdate(BaseSchema):
    """Partial update; only fields that were sent are applied"""
    rule_type: Optional[ShippingRuleType] = None
    condition_type: Optional[ConditionType] = None
    condition_value: Optional[RuleConditions] = None
    discount_type: Optional[AdjustmentType] = None
    discount_value: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    shipping_methods: Optional[List[int]] = None
    production_days: Optional[int] = Field(default=None, ge=0)
    priority: Optional[int] = None
    active: Optional[bool] = None

    @field_validator('condition_value', 'shipping_methods', mode='before')
    @classmethod
    def parse_json_columns(cls, v):
        return _load_json(v)


class ShippingRuleRead(ShippingRuleBase, TimestampedSchema):
    id: int


class AppliedRule(BaseModel):
    """Audit record of a rule that changed a quote"""
    rule_id: int
    rule_type: ShippingRuleType
    applied: bool = True
    original_price: Optional[float] = None
    final_price: Optional[float] = None
    surcharge: Optional[float] = None
    production_days_added: Optional[int] = None


class ShippingRulesResult(BaseModel):
    options: List[ShippingOption]
    applied_rules: List[AppliedRule] = []
    production_days_added: int = 0


class RulePreviewRequest(BaseModel):
    """Run the stored rules against options supplied by the caller"""
    shipping_options: List[ShippingOption]
    order_value: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    destination_state: Optional[str] = Field(default=None, max_length=2)


# --- Settings ---

class ProductionDaysSetting(BaseModel):
    production_days: int = Field(ge=0)


class SystemSettingRead(TimestampedSchema):
    key: str
    value: str
    description: Optional[str] = None


# --- Quotes ---

class QuoteParcel(BaseModel):
    """Parcel sent to the rate provider (cm / kg / currency)"""
    id: str = "1"
    width: float = Field(default=20, gt=0)
    height: float = Field(default=10, gt=0)
    length: float = Field(default=30, gt=0)
    weight: float = Field(default=0.3, gt=0)
    insurance_value: float = Field(default=100, ge=0)
    quantity: int = Field(default=1, ge=1)


class ShippingQuoteRequest(BaseModel):
    destination_postal_code: str
    destination_state: Optional[str] = Field(default=None, max_length=2)
    order_value: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    products: List[QuoteParcel] = Field(default_factory=lambda: [QuoteParcel()], min_length=1)
    environment: IntegrationEnvironment = IntegrationEnvironment.PRODUCTION
    apply_rules: bool = True


class ShippingQuoteRead(TimestampedSchema):
    id: int
    environment: str
    destination_postal_code: str
    destination_state: Optional[str] = None
    order_value: float
    products_snapshot: List[Dict[str, Any]]
    options: Optional[List[ShippingOption]] = None
    applied_rules: Optional[List[AppliedRule]] = None
    free_shipping_applied: bool = False
    free_shipping_rule_id: Optional[int] = None
    production_days_added: int = 0
