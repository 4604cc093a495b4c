from datetime import date, datetime

import numpy as np
import pytest

from cashflow_engine.cash_flows import (
    CashAmount,
    CashFlow,
    aggregate_cash_flows,
    cash_flow_table,
    get_cash_flows_after,
    round2digits,
)
from cashflow_engine.currency import parse_currency
from cashflow_engine.exceptions import ConversionFailed
from cashflow_engine.quotes import InMemoryQuoteHandler

TOL = 1e-11
FX_RATE = 81.2345


@pytest.fixture(scope="module")
def eur():
    return parse_currency("EUR")


@pytest.fixture(scope="module")
def jpy():
    return parse_currency("JPY")


@pytest.fixture(scope="module")
def time():
    return datetime(2020, 4, 6, 18, 0, 0)


@pytest.fixture(scope="module")
def fx_db(eur, jpy, time):
    db = InMemoryQuoteHandler()
    db.insert_fx_quote(FX_RATE, eur, jpy, time)
    db.set_rounding_digits(jpy, 0)
    return db


def test_round2digits_half_away_from_zero():
    assert round2digits(2.5, 0) == 3.0
    assert round2digits(-2.5, 0) == -3.0
    assert round2digits(0.125, 2) == 0.13
    assert round2digits(1234.4, 0) == 1234.0
    np.testing.assert_allclose(round2digits(np.array([0.5, 1.5, -0.5]), 0), [1.0, 2.0, -1.0])


def test_cash_amount_arithmetic(eur, jpy, time, fx_db):
    eur_amount = CashAmount(100.0, eur)
    jpy_amount = CashAmount(7500.0, jpy)
    eur2_amount = CashAmount(200.0, eur)

    tmp = CashAmount(0.0, eur)
    tmp.add(eur_amount, time, fx_db)
    assert tmp.amount == pytest.approx(100.0, abs=TOL)

    tmp.add_opt(eur2_amount, time, fx_db)
    assert tmp.amount == pytest.approx(300.0, abs=TOL)

    tmp.add_opt(None, time, fx_db)
    assert tmp.amount == pytest.approx(300.0, abs=TOL)

    tmp.add_opt(jpy_amount, time, fx_db)
    assert tmp.amount == pytest.approx(300.0 + 7500.0 / FX_RATE, abs=TOL)

    tmp.sub(jpy_amount, time, fx_db)
    assert tmp.amount == pytest.approx(300.0, abs=TOL)

    tmp.sub_opt(None, time, fx_db)
    assert tmp.amount == pytest.approx(300.0, abs=TOL)

    tmp.sub_opt(eur_amount, time, fx_db)
    assert tmp.amount == pytest.approx(200.0, abs=TOL)

    assert str(tmp.currency) == "EUR", "Sum must stay in the currency it started with"


def test_add_is_asymmetric_in_currency(eur, jpy, time, fx_db):
    a = CashAmount(100.0, eur).add(CashAmount(7500.0, jpy), time, fx_db)
    b = CashAmount(7500.0, jpy).add(CashAmount(100.0, eur), time, fx_db)

    assert a.currency == eur
    assert b.currency == jpy
    assert a.amount == pytest.approx(100.0 + 7500.0 / FX_RATE, abs=TOL)
    assert b.amount == pytest.approx(7500.0 + 100.0 * FX_RATE, abs=TOL)


def test_round_by_convention(eur, jpy, time, fx_db):
    conventions = {"JPY": 0}

    tmp = CashAmount(100.0, eur).add(CashAmount(7500.0, jpy), time, fx_db)
    assert tmp.round_by_convention(conventions).amount == pytest.approx(192.33, abs=TOL)

    tmp = CashAmount(7500.0, jpy).add(CashAmount(100.0, eur), time, fx_db)
    assert tmp.round_by_convention(conventions).amount == pytest.approx(15623.0, abs=TOL)


def test_round_by_convention_empty_mapping_uses_two_digits(eur, jpy):
    assert CashAmount(1.23456, eur).round_by_convention({}).amount == pytest.approx(1.23, abs=TOL)
    assert CashAmount(1234.567, jpy).round_by_convention({}).amount == pytest.approx(1234.57, abs=TOL)


def test_add_with_automatic_rounding(eur, jpy, time, fx_db):
    tmp = CashAmount(100.0, eur).add(CashAmount(7500.0, jpy), time, fx_db, with_rounding=True)
    assert tmp.amount == pytest.approx(192.33, abs=TOL)

    tmp = CashAmount(7500.0, jpy).add(CashAmount(100.0, eur), time, fx_db, with_rounding=True)
    assert tmp.amount == pytest.approx(15623.0, abs=TOL)


def test_missing_fx_quote_aborts_addition(eur, time, fx_db):
    usd = parse_currency("USD")
    tmp = CashAmount(100.0, eur)
    with pytest.raises(ConversionFailed):
        tmp.add(CashAmount(10.0, usd), time, fx_db)
    assert tmp.amount == 100.0, "Failed conversion must leave the amount untouched"


def test_fx_quote_after_time_is_not_used(eur, jpy, fx_db):
    with pytest.raises(ConversionFailed):
        CashAmount(100.0, eur).add(CashAmount(7500.0, jpy), datetime(2020, 4, 5), fx_db)


def test_negation_and_display(eur):
    neg = -CashAmount(12.5, eur)
    assert neg.amount == -12.5 and neg.currency == eur
    assert str(CashAmount(12.5, eur)) == "         12.5000 EUR"

    cf = CashFlow.new(10.0, eur, date(2021, 1, 4))
    assert (-cf).amount.amount == -10.0
    assert str(cf).startswith("2021-01-04")


def test_fuzzy_compare(eur):
    usd = parse_currency("USD")
    d = date(2021, 10, 1)
    cf = CashFlow.new(100.0, eur, d)

    assert cf.fuzzy_cash_flows_cmp_eq(CashFlow.new(100.0 + 1e-9, eur, d), 1e-8)
    assert not cf.fuzzy_cash_flows_cmp_eq(CashFlow.new(100.1, eur, d), 1e-8)
    assert not cf.fuzzy_cash_flows_cmp_eq(CashFlow.new(100.0, usd, d), 1e6), "Currency must match"
    assert not cf.fuzzy_cash_flows_cmp_eq(CashFlow.new(100.0, eur, date(2021, 10, 2)), 1e6), "Date must match"
    assert not cf.fuzzy_cash_flows_cmp_eq(CashFlow.new(float("nan"), eur, d), 1e6)


def test_get_cash_flows_after(eur):
    flows = [
        CashFlow.new(1.0, eur, date(2021, 1, 1)),
        CashFlow.new(2.0, eur, date(2021, 6, 1)),
        CashFlow.new(3.0, eur, date(2022, 1, 1)),
    ]
    after = get_cash_flows_after(flows, date(2021, 6, 1))
    assert [cf.amount.amount for cf in after] == [3.0]


def test_aggregate_cash_flows(eur):
    usd = parse_currency("USD")
    d1, d2 = date(2021, 1, 1), date(2021, 7, 1)
    flows = [
        CashFlow.new(10.0, eur, d2),
        CashFlow.new(100.0, eur, d1),
        CashFlow.new(20.0, usd, d1),
        CashFlow.new(50.0, eur, d1),
    ]

    agg = aggregate_cash_flows(flows)
    assert len(agg) == 3
    assert agg[0].fuzzy_cash_flows_cmp_eq(CashFlow.new(150.0, eur, d1), TOL)
    assert agg[1].fuzzy_cash_flows_cmp_eq(CashFlow.new(20.0, usd, d1), TOL)
    assert agg[2].fuzzy_cash_flows_cmp_eq(CashFlow.new(10.0, eur, d2), TOL)
    assert aggregate_cash_flows([]) == []


def test_cash_flow_table_columns(eur):
    table = cash_flow_table([CashFlow.new(5.0, eur, date(2022, 3, 1))])
    assert list(table.columns) == ["date", "amount", "currency"]
    assert table["currency"].iloc[0] == "EUR"
