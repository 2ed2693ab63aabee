# tests/unit/services/shipping/test_rate_provider.py
import pytest

from app.services.shipping.base import BaseRateProvider


def test_build_options_skips_errors_and_bad_prices():
    raw = [
        {"id": 1, "name": "PAC", "price": "24.90", "delivery_time": 6,
         "delivery_range": {"min": 5, "max": 6}, "company": {"id": 1, "name": "Correios"}},
        {"id": 2, "name": "SEDEX", "error": "Service unavailable for this route"},
        {"id": 3, "name": "Jadlog", "price": "NaN"},
        {"id": 4, "name": "Loggi"},
        {},
        {"id": 5, "name": ".Com", "price": 31.5, "delivery_time": 4},
    ]

    options = BaseRateProvider.build_options(raw)

    assert [option.id for option in options] == [1, 5]
    assert options[0].delivery_range.max == 6
    assert options[1].price == "31.5"
    assert options[1].price_value == 31.5


def test_base_rate_provider_is_abstract():
    with pytest.raises(TypeError):
        BaseRateProvider()


@pytest.mark.asyncio
async def test_fake_provider_satisfies_interface(fake_provider, sample_parcels):
    options = await fake_provider.get_rates("16010000", "01310100", sample_parcels)

    assert len(options) == 3
    assert isinstance(fake_provider, BaseRateProvider)
