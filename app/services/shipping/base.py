"""
Base Rate Provider Interface

This module defines the abstract base class that shipping rate aggregator
integrations implement. The checkout only needs one thing from a provider:
priced options for a set of parcels between two postal codes.

Provider implementations raise RateProviderError on transport or API
failures and use build_options() to turn raw response entries into
validated ShippingOption objects.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Sequence

from pydantic import ValidationError

from app.schemas.shipping import QuoteParcel, ShippingOption

logger = logging.getLogger(__name__)


class BaseRateProvider(ABC):
    """Base class for all shipping rate providers"""

    provider_name = "Generic Provider"
    provider_code = "generic"

    @abstractmethod
    async def get_rates(
        self,
        origin_postal_code: str,
        destination_postal_code: str,
        products: Sequence[QuoteParcel],
        environment: str = "production",
    ) -> List[ShippingOption]:
        """Get shipping rates

        Args:
            origin_postal_code: 8-digit origin postal code
            destination_postal_code: 8-digit destination postal code
            products: Parcels to ship
            environment: "production" or "sandbox"

        Returns:
            Priced shipping options

        Raises:
            RateProviderError: If the provider cannot be reached or rejects the request
        """
        pass

    @classmethod
    def build_options(cls, raw_options: Iterable[Dict[str, Any]]) -> List[ShippingOption]:
        """
        Validate raw provider entries, skipping the ones the provider marked as
        errors or that carry no usable price.
        """
        options = []
        for raw in raw_options:
            if not raw or raw.get("error"):
                continue
            try:
                options.append(ShippingOption.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"{cls.provider_name}: skipping option {raw.get('id')}: {e.error_count()} validation error(s)")
        return options
