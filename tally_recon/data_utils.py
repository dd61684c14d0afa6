# tally_recon/data_utils.py
# Value coercion shared by the classifier, the aggregators and the action feed.
# Nothing here raises on dirty cell data: numbers fall back to 0, dates pass
# through, return periods fall back to ''.

import datetime
import re

import pandas as pd

from .constants import GST_STATE_CODES, MONTHS


def is_null(val):
    """None / NaN / NaT. Empty strings are values, not nulls."""
    if val is None:
        return True
    if isinstance(val, str):
        return False
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def is_blank(val):
    """True for None / NaN / NaT / empty-after-strip strings."""
    if val is None:
        return True
    if isinstance(val, str):
        return val.strip() == ''
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def clean_currency(x):
    """Robust conversion to float. Commas allowed, anything unparseable is 0."""
    if is_blank(x) or isinstance(x, bool):
        return 0.0
    try:
        if isinstance(x, str):
            x = x.replace(',', '').replace(' ', '')
        val = float(x)
    except (TypeError, ValueError):
        return 0.0
    if val != val or val in (float('inf'), float('-inf')):
        return 0.0
    return val


def round_amount(x):
    return round(clean_currency(x), 2)


def _normalize_yes_no(value):
    if is_blank(value):
        return None
    lower = str(value).strip().lower()
    if lower in ('yes', 'y'):
        return 'Yes'
    if lower in ('no', 'n'):
        return 'No'
    return None


def normalize_accept_credit(value):
    """'yes'/'y' → 'Yes', 'no'/'n' → 'No', anything else → None (unset)."""
    return _normalize_yes_no(value)


def normalize_itc_availability(value):
    """Same Yes/No folding as Accept Credit; unknown text is kept as typed."""
    if is_blank(value):
        return None
    folded = _normalize_yes_no(value)
    return folded if folded else str(value).strip()


def is_disallow_ledger(ledger_name, marker):
    if is_blank(ledger_name):
        return False
    return marker.lower() in str(ledger_name).strip().lower()


# ── Action feed field normalizers ─────────────────────────────────────────────

def normalize_gstin(value):
    return '' if is_blank(value) else str(value).strip().upper()


_DMY = re.compile(r'^(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})$')
_ISO = re.compile(r'^\d{4}-\d{1,2}-\d{1,2}([T ].*)?$')


def normalize_date_dmy(value):
    """
    Invoice date → DD-MM-YYYY.
    Accepts d/m/y, d-m-y (2 or 4 digit year), ISO strings and date objects.
    Anything else is handed back unchanged (stripped).
    """
    if is_blank(value):
        return ''
    if isinstance(value, (datetime.date, pd.Timestamp)):
        return value.strftime('%d-%m-%Y')

    s_val = str(value).strip()
    m = _DMY.match(s_val)
    if m:
        d, mth, y = m.groups()
        year = f'20{y}' if len(y) == 2 else y.zfill(4)
        return f'{d.zfill(2)}-{mth.zfill(2)}-{year}'

    if _ISO.match(s_val):
        parsed = pd.to_datetime(s_val, errors='coerce')
        if not pd.isna(parsed):
            return parsed.strftime('%d-%m-%Y')
    return s_val


_PERIOD_TEXT = re.compile(r"^([A-Za-z]+)\s*'?\s*(\d{2,4})$")


def normalize_return_period(value):
    """
    Return period → MMYYYY.
    '102025' stays as is; "Oct'25", 'Oct25', 'October 2025', 'oct-2025' are
    read through the month table. Anything else is rejected as ''.
    """
    if is_blank(value):
        return ''
    raw = str(value).strip()
    if re.fullmatch(r'\d{6}', raw):
        return raw

    cleaned = re.sub(r"[^a-zA-Z0-9']", ' ', raw).strip()
    m = _PERIOD_TEXT.match(cleaned)
    if not m:
        return ''
    month = MONTHS.get(m.group(1).lower())
    if not month:
        return ''
    year_part = m.group(2)
    year = f'20{year_part}' if len(year_part) == 2 else year_part.zfill(4)[-4:]
    return f'{month}{year}'


def state_code_from_place(place):
    """
    Place of supply → 2-digit GST state code.
    '27-Maharashtra' → '27'; 'Maharashtra' → '27';
    'Delhi (National Capital Territory)' → '07'; unknown → ''.
    """
    if is_blank(place):
        return ''
    trimmed = str(place).strip()
    digits = re.search(r'(\d{2})', trimmed)
    if digits:
        return digits.group(1)
    lower = trimmed.lower()
    if lower in GST_STATE_CODES:
        return GST_STATE_CODES[lower]
    cleaned = re.sub(r'\(.*?\)', '', lower)
    cleaned = re.sub(r'[^a-z\s]', '', cleaned)
    cleaned = re.sub(r'\s+', ' ', cleaned).strip()
    return GST_STATE_CODES.get(cleaned, '')


def invoice_type_code(value):
    """Free-text invoice type → R (regular) / C (credit) / D (debit)."""
    if is_blank(value):
        return 'R'
    first = str(value).strip().lower()[:1]
    if first == 'c':
        return 'C'
    if first == 'd':
        return 'D'
    return 'R'
