"""
Module for formatting timestamps and decimal values using Babel.

"""
import datetime
import logging
from typing import List, Optional

from babel import Locale, UnknownLocaleError, dates, numbers

DEFAULT_LOCALE: str = 'en_GB'

LOCALE_MAP: List[str] = [
    'en_GB',
    'en_US',
    'de_DE',
    'es_ES',
    'fr_FR',
    'hu_HU',
    'it_IT',
    'ja_JP',
    'nl_NL',
    'pl_PL',
    'pt_BR',
    'sv_SE',
    'zh_CN',
]


def get_locale(locale: Optional[str]) -> Locale:
    """
    Parse a locale string, falling back to the default locale.

    Args:
        locale (str): Locale string, e.g. 'de_DE'.

    Returns:
        Locale: The parsed Babel locale.
    """
    try:
        return Locale.parse(locale or DEFAULT_LOCALE)
    except (UnknownLocaleError, ValueError, TypeError) as ex:
        logging.warning(f'Invalid locale "{locale}", using {DEFAULT_LOCALE}: {ex}')
        return Locale.parse(DEFAULT_LOCALE)


def format_timestamp(value: datetime.datetime, locale: str, fmt: str = 'medium') -> str:
    """
    Format a timestamp according to the locale conventions.

    Naive timestamps are assumed to be UTC.

    Args:
        value (datetime.datetime): The timestamp to format.
        locale (str): Locale string, e.g. 'en_US'.
        fmt (str): One of Babel's named formats ('short', 'medium', 'long').

    Returns:
        str: The formatted timestamp, or its ISO form if formatting fails.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=datetime.timezone.utc)
    try:
        return dates.format_datetime(value, format=fmt, locale=get_locale(locale))
    except (ValueError, KeyError) as ex:
        logging.debug(f'Error formatting timestamp: {ex}')
        return value.isoformat()


def format_date(value: datetime.datetime, locale: str) -> str:
    """
    Format the date part of a timestamp, e.g. 'Jan 5, 2025' in en_US.

    Args:
        value (datetime.datetime): The timestamp to format.
        locale (str): Locale string, e.g. 'en_US'.

    Returns:
        str: The formatted date.
    """
    try:
        return dates.format_date(value.date(), format='medium', locale=get_locale(locale))
    except (ValueError, KeyError) as ex:
        logging.debug(f'Error formatting date: {ex}')
        return value.date().isoformat()


def format_float(value: float, locale: str) -> str:
    """
    Format a float as a decimal string according to the locale conventions.

    Args:
        value (float): The numeric value to be formatted.
        locale (str): Locale string, e.g. 'en_US'.

    Returns:
        str: The formatted decimal string.
    """
    try:
        return numbers.format_decimal(value, locale=get_locale(locale))
    except (ValueError, TypeError) as ex:
        logging.debug(f'Error formatting number: {ex}')
        return str(value)


def get_display_name(locale: str) -> str:
    """Return the English display name of a locale, e.g. 'German (Germany)'."""
    return get_locale(locale).get_display_name('en')
