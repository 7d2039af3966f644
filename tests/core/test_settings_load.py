import importlib

from django.conf import settings


def test_test_settings_import():
    module = importlib.import_module("config.settings.test")
    assert module.COMPENSATION_CURRENCY_SYMBOL == "$"


def test_currency_symbol_reaches_the_engine():
    from compensation.services import build_engine

    assert settings.COMPENSATION_CURRENCY_SYMBOL == "$"
    assert build_engine().evaluator.money("1234.5") == "$1,234.50"
