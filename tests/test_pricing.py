import pytest

from app.shared.services.pricing import TAX_RATE, calculate_totals, clamp_discount, line_subtotal


def test_reference_bill_with_ten_percent_discount():
    items = [{"price": 8000, "quantity": 1}, {"price": 1500, "quantity": 2}]

    totals = calculate_totals(items, 10)

    assert totals.subtotal == pytest.approx(11000)
    assert totals.discount_amount == pytest.approx(1100)
    assert totals.after_discount == pytest.approx(9900)
    assert totals.tax_amount == pytest.approx(1386)
    assert totals.total == pytest.approx(11286)


@pytest.mark.parametrize("discount", [0, 5, 12.5, 50, 100])
def test_total_matches_closed_form(discount):
    items = [{"price": 2200, "quantity": 3}, {"price": 800, "quantity": 1}]
    gross = 2200 * 3 + 800

    totals = calculate_totals(items, discount)

    assert totals.total == pytest.approx(gross * (1 - discount / 100) * (1 + TAX_RATE))


def test_discount_is_clamped():
    items = [{"price": 1000, "quantity": 1}]

    assert calculate_totals(items, 150).total == pytest.approx(0)
    assert calculate_totals(items, -20).total == pytest.approx(1140)
    assert clamp_discount(None) == 0


def test_empty_items_give_zero_totals():
    totals = calculate_totals([], 25)

    assert totals.subtotal == 0
    assert totals.tax_amount == 0
    assert totals.total == 0


def test_recomputing_is_idempotent():
    items = [{"price": 1500, "quantity": 2}, {"price": 15000, "quantity": 1}]

    assert calculate_totals(items, 7).to_dict() == calculate_totals(items, 7).to_dict()


def test_reads_objects_with_attributes():
    class Line:
        def __init__(self, price, quantity):
            self.price = price
            self.quantity = quantity

    totals = calculate_totals([Line(500, 1)])

    assert totals.subtotal == 500
    assert totals.tax_amount == pytest.approx(70)
    assert totals.total == pytest.approx(570)
    assert line_subtotal(1500, 2) == 3000
