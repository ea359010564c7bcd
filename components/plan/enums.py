"""Closed enumerations shared by models, policies and the REST layer."""

import enum


class PeriodType(str, enum.Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class CurrencyCode(str, enum.Enum):
    USD = "USD"
    KRW = "KRW"


class LanguageCode(str, enum.Enum):
    EN = "en"
    KO = "ko"


class GoalsMode(str, enum.Enum):
    """How plan totals and goals are carried into a new or switched plan."""
    COPY_AS_IS = "COPY_AS_IS"
    CONVERT_USING_FX = "CONVERT_USING_FX"
    RESET_EMPTY = "RESET_EMPTY"


class SwitchMode(str, enum.Enum):
    """Which of period type and currency a switch request changes."""
    PERIOD_ONLY = "PERIOD_ONLY"
    CURRENCY_ONLY = "CURRENCY_ONLY"
    PERIOD_AND_CURRENCY = "PERIOD_AND_CURRENCY"
