from spendy_dashboard.formatting import format_currency, format_percentage


def test_format_currency():
    assert format_currency(1234.56) == '€1,234.56'
    assert format_currency(-12.5) == '-€12.50'
    assert format_currency(0) == '€0.00'
    assert format_currency(1000, include_sign=False) == '1,000.00'


def test_format_percentage():
    assert format_percentage(120) == '120.0'
    assert format_percentage(33.3333, decimals=2) == '33.33'
