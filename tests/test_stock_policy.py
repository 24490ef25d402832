import pytest

from storefront.core.exceptions import InsufficientStockError
from storefront.services.stock_policy import check_availability


def test_enough_stock_passes():
    check_availability(available=5, requested=5)
    check_availability(available=5, requested=1)


def test_more_than_stock_raises_with_details():
    with pytest.raises(InsufficientStockError) as exc_info:
        check_availability(available=1, requested=2)

    assert exc_info.value.code == "INSUFFICIENT_STOCK"
    assert exc_info.value.message == "Not enough stock"
    assert exc_info.value.details == {"requested_qty": 2, "available_qty": 1}


def test_out_of_stock_rejects_first_unit():
    with pytest.raises(InsufficientStockError):
        check_availability(available=0, requested=1)
