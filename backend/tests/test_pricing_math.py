from decimal import Decimal
import pytest
from matcha_trade.services.pricing import (
    money, landed_cost, profit_per_kg, margin_percent, price_change_percent, price_change_severity,
    relation_economics,
)

D = Decimal


def test_money_rounds_half_up():
    assert money(D('1.005')) == D('1.01')
    assert money(D('2.344')) == D('2.34')
    assert money(D('-1.005')) == D('-1.01')


def test_landed_cost_formula():
    # (16500 / 110 + 15) * 1.09
    assert landed_cost(D('16500'), D('110'), D('15'), D('0.09')) == D('179.85')
    assert landed_cost(D('11000'), D('110'), D('0'), D('0')) == D('100.00')


def test_landed_cost_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        landed_cost(D('16500'), D('0'), D('15'), D('0.09'))


def test_profit_and_margin():
    assert profit_per_kg(D('260'), D('179.85')) == D('80.15')
    assert margin_percent(D('260'), D('179.85')) == D('30.83')
    assert margin_percent(D('0'), D('10')) == D('0.00')


def test_price_change_thresholds():
    assert price_change_percent(None, D('10')) is None
    assert price_change_percent(D('0'), D('10')) is None
    assert price_change_percent(D('100'), D('104.99')) == D('4.99')
    assert price_change_severity(D('4.99')) is None
    assert price_change_severity(D('5')) == 'warning'
    assert price_change_severity(D('-7.5')) == 'warning'
    assert price_change_severity(D('10')) == 'critical'
    assert price_change_severity(D('-12')) == 'critical'
    assert price_change_severity(None) is None


def test_relation_economics_breakdown():
    econ = relation_economics(D('16500'), D('0.0091'), D('15'), D('0.09'), D('260'), D('10'), D('10'))
    assert econ['cost_sgd'] == D('150.15')
    assert econ['tax'] == D('14.86')
    assert econ['landed_cost'] == D('180.01')
    assert econ['effective_selling_price'] == D('234.00')
    assert econ['profit_per_kg'] == D('53.99')
    assert econ['margin_percent'] == D('23.07')
    assert econ['monthly_profit'] == D('539.87')
    assert econ['annual_profit'] == D('6478.38')
    assert econ['warnings'] == []


def test_relation_economics_warnings():
    low = relation_economics(D('16500'), D('0.0091'), D('15'), D('0.09'), D('200'), D('0'), D('0'))
    assert low['warnings'] == ['low_margin']
    negative = relation_economics(D('16500'), D('0.0091'), D('15'), D('0.09'), D('150'), D('0'), D('0'))
    assert negative['warnings'] == ['negative_profit']
    assert negative['profit_per_kg'] < 0
    free = relation_economics(D('16500'), D('0.0091'), D('15'), D('0.09'), D('260'), D('100'), D('1'))
    assert free['margin_percent'] == D('0.00')
