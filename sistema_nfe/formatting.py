"""pt-BR display helpers shared by the API and the back-office screens."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

_CNPJ_PATTERN = re.compile(r"\A(\d{2})(\d{3})(\d{3})(\d{4})(\d{2})\Z")
_CEP_PATTERN = re.compile(r"\A(\d{5})(\d{3})\Z")
_IE_PATTERN = re.compile(r"\A(\d{3})(\d{3})(\d{3})(\d{3})\Z")

# Intl pt-BR separates the currency symbol with a no-break space
_CURRENCY_PREFIX = "R$\u00a0"


def _pt_br_decimal(numeric: float) -> str:
    return f"{numeric:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def format_currency(value: Any) -> str:
    numeric = float(value)
    formatted = _pt_br_decimal(abs(numeric))
    if numeric < 0 and formatted != "0,00":
        return f"-{_CURRENCY_PREFIX}{formatted}"
    return f"{_CURRENCY_PREFIX}{formatted}"


def format_number(value: Any) -> str:
    return _pt_br_decimal(float(value))


def _parse_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value or "").strip()
    # full ISO date-times keep only their calendar part
    return date.fromisoformat(raw[:10])


def format_date(value: date | str) -> str:
    """Render an ISO date (or date-time) as ``DD/MM/AAAA``.

    Raises ``ValueError`` for strings that are not ISO dates.
    """
    return _parse_date(value).strftime("%d/%m/%Y")


def format_date_time(date_value: date | str, time_value: str) -> str:
    """Combine an ISO date and an ``HH:MM`` time as ``DD/MM/AAAA, HH:MM:SS``."""
    day = _parse_date(date_value)
    hour, minute = str(time_value or "").strip().split(":")[:2]
    moment = datetime(day.year, day.month, day.day, int(hour), int(minute))
    return moment.strftime("%d/%m/%Y, %H:%M:%S")


def format_cnpj(cnpj: str) -> str:
    return _CNPJ_PATTERN.sub(r"\1.\2.\3/\4-\5", cnpj)


def format_cep(cep: str) -> str:
    return _CEP_PATTERN.sub(r"\1-\2", cep)


def format_ie(ie: str) -> str:
    return _IE_PATTERN.sub(r"\1.\2.\3.\4", ie)


def only_digits(value: Any) -> str:
    return re.sub(r"\D", "", str(value or ""))
