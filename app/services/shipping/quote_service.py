"""
Shipping quotes: rate provider -> rules -> saved quote.

The provider response is cached briefly (see cache.py). Rules and the
production lead time are always loaded fresh, then the engine prices the
options and the result is stored in shipping_quotes so the admin can look at
or refresh it later.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.exceptions import (
    DatabaseError,
    NoShippingOptionsError,
    RateProviderError,
    ShippingQuoteNotFoundError,
    ShippingQuoteValidationError,
)
from app.core.utils import model_to_schema
from app.models.shipping import ShippingQuote
from app.schemas.shipping import (
    QuoteParcel,
    ShippingOption,
    ShippingQuoteRead,
    ShippingQuoteRequest,
    ShippingRulesResult,
)
from app.services.settings_service import SettingsService
from app.services.shipping.base import BaseRateProvider
from app.services.shipping.cache import QuoteCache, generate_cache_key
from app.services.shipping.rule_service import ShippingRuleService
from app.services.shipping.rules import (
    add_production_days_to_options,
    apply_shipping_rules,
    find_free_shipping_rule,
)
from app.services.shipping.utils import add_delivery_estimates, normalize_postal_code

logger = logging.getLogger(__name__)

POSTAL_CODE_LENGTH = 8


def _validate_postal_code(value: Optional[str], label: str) -> str:
    postal_code = normalize_postal_code(value)
    if len(postal_code) != POSTAL_CODE_LENGTH:
        raise ShippingQuoteValidationError(f"Invalid {label} postal code: {value!r}")
    return postal_code


def _normalize_state(value: Optional[str]) -> Optional[str]:
    if not value or not value.strip():
        return None
    return value.strip().upper()[:2]


class ShippingQuoteService:
    def __init__(
        self,
        db: AsyncSession,
        provider: BaseRateProvider,
        cache: Optional[QuoteCache] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.provider = provider
        self.cache = cache
        self.settings = settings or get_settings()
        self.rule_service = ShippingRuleService(db)
        self.settings_service = SettingsService(db)

    async def fetch_options(
        self,
        destination_postal_code: str,
        products: Sequence[QuoteParcel],
        environment: str,
        use_cache: bool = True,
    ) -> List[ShippingOption]:
        """
        Priced options for the parcels, from the cache when possible.

        Options without a positive price are dropped.

        Raises:
            ShippingQuoteValidationError: If the configured origin postal code is invalid
            RateProviderError: If the provider call fails
        """
        cache_key = generate_cache_key(destination_postal_code, products, environment)
        options = self.cache.get(cache_key) if (self.cache and use_cache) else None

        if options is not None:
            logger.debug(f"Shipping quote cache hit for {cache_key}")
        else:
            origin = _validate_postal_code(self.settings.origin_postal_code(environment), "origin")
            try:
                options = await self.provider.get_rates(origin, destination_postal_code, products, environment)
            except RateProviderError:
                raise
            except Exception as e:
                logger.error(f"{self.provider.provider_name} rate request failed: {str(e)}")
                raise RateProviderError(f"{self.provider.provider_name} rate request failed: {str(e)}") from e

            if self.cache:
                self.cache.set(cache_key, options)

        valid = [option for option in options if option.price_value > 0]
        if len(valid) != len(options):
            logger.info(f"Dropped {len(options) - len(valid)} shipping option(s) without a positive price")
        return valid

    async def _price_options(
        self,
        options: List[ShippingOption],
        order_value: float,
        destination_state: Optional[str],
        apply_rules: bool,
    ) -> ShippingRulesResult:
        production_days = await self.settings_service.get_production_days()
        if not apply_rules:
            return ShippingRulesResult(
                options=add_production_days_to_options(options, production_days),
                production_days_added=production_days,
            )

        rules = await self.rule_service.get_active_rules()
        result = apply_shipping_rules(
            options,
            order_value,
            destination_state,
            rules=rules,
            production_days=production_days,
        )
        logger.info(
            f"Applied {len(result.applied_rules)} shipping rule(s) to {len(result.options)} option(s) "
            f"(order value {order_value:.2f}, state {destination_state or 'N/A'})"
        )
        return result

    @staticmethod
    def _store_result(quote: ShippingQuote, result: ShippingRulesResult) -> None:
        free_shipping = find_free_shipping_rule(result.applied_rules)
        # Estimates use the delivery time after production days were added
        options = add_delivery_estimates(result.options)
        quote.options = [option.model_dump(mode="json") for option in options]
        quote.applied_rules = [applied.model_dump(mode="json") for applied in result.applied_rules]
        quote.free_shipping_applied = free_shipping is not None
        quote.free_shipping_rule_id = free_shipping.rule_id if free_shipping else None
        quote.production_days_added = result.production_days_added

    async def create_quote(self, request: ShippingQuoteRequest) -> ShippingQuoteRead:
        """
        Quote, price and save.

        Raises:
            ShippingQuoteValidationError: If a postal code is invalid
            NoShippingOptionsError: If the provider returned nothing usable
            RateProviderError: If the provider call fails
            DatabaseError: If the quote cannot be saved
        """
        destination = _validate_postal_code(request.destination_postal_code, "destination")
        state = _normalize_state(request.destination_state)
        environment = request.environment.value

        options = await self.fetch_options(destination, request.products, environment)
        if not options:
            raise NoShippingOptionsError(f"No shipping options available for {destination}")

        result = await self._price_options(options, request.order_value, state, request.apply_rules)

        quote = ShippingQuote(
            environment=environment,
            destination_postal_code=destination,
            destination_state=state,
            order_value=request.order_value,
            products_snapshot=[parcel.model_dump(mode="json") for parcel in request.products],
        )
        self._store_result(quote, result)

        try:
            self.db.add(quote)
            await self.db.commit()
            await self.db.refresh(quote)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to save shipping quote: {str(e)}") from e

        return await model_to_schema(quote, ShippingQuoteRead)

    async def _get_quote_model(self, quote_id: int) -> ShippingQuote:
        result = await self.db.execute(select(ShippingQuote).where(ShippingQuote.id == quote_id))
        quote = result.scalar_one_or_none()
        if quote is None:
            raise ShippingQuoteNotFoundError(f"Shipping quote with ID {quote_id} not found")
        return quote

    async def get_quote(self, quote_id: int) -> ShippingQuoteRead:
        quote = await self._get_quote_model(quote_id)
        return await model_to_schema(quote, ShippingQuoteRead)

    async def requote(self, quote_id: int) -> ShippingQuoteRead:
        """
        Ask the provider again for a saved quote's parcels and re-apply the
        current rules. The cache is bypassed.

        Raises:
            ShippingQuoteNotFoundError: If the quote does not exist
            ShippingQuoteValidationError: If the saved quote has no usable destination or parcels
            NoShippingOptionsError: If the provider returned nothing usable
        """
        quote = await self._get_quote_model(quote_id)

        destination = _validate_postal_code(quote.destination_postal_code, "destination")
        if not quote.products_snapshot:
            raise ShippingQuoteValidationError(f"Shipping quote {quote_id} has no saved parcels")
        products = [QuoteParcel.model_validate(parcel) for parcel in quote.products_snapshot]
        environment = quote.environment or "production"

        options = await self.fetch_options(destination, products, environment, use_cache=False)
        if not options:
            raise NoShippingOptionsError(f"No shipping options available to requote {quote_id}")

        result = await self._price_options(
            options,
            float(quote.order_value or 0),
            _normalize_state(quote.destination_state),
            apply_rules=True,
        )
        self._store_result(quote, result)

        try:
            await self.db.commit()
            await self.db.refresh(quote)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to update shipping quote {quote_id}: {str(e)}") from e

        logger.info(f"Requoted shipping quote {quote_id}: {len(result.options)} option(s)")
        return await model_to_schema(quote, ShippingQuoteRead)
