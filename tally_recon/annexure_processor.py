# tally_recon/annexure_processor.py
# Tax totals for the "rest" sheets of a GSTR-2B workbook (ECO, ISD, IMPG,
# CDNR ...). Their headers arrive flattened as free text, e.g.
#   "Integrated Tax(Tax Amount)"  "Central Tax(Input Tax Distribution by ISD)"
# so tax columns are located by pattern instead of by fixed index.

import logging
import re

import pandas as pd

from .constants import (ANNEXURE_RULES, CREDIT_NOTE, DEBIT_NOTE,
                        NOTE_TYPE_PATTERNS, TAX_TYPE_PATTERNS)
from .data_utils import clean_currency, is_blank
from .models import AnnexureSheet, TaxTotals

logger = logging.getLogger(__name__)

TAX_TYPES = ('igst', 'cgst', 'sgst', 'cess')
DEFAULT_FAMILY = 'default'


def _rule(family):
    for rule in ANNEXURE_RULES:
        if rule['family'] == family:
            return rule
    return ANNEXURE_RULES[-1]


def sheet_family(sheet_name):
    """'isd' / 'impg' / 'default' from the sheet name."""
    lower = str(sheet_name or '').lower()
    for rule in ANNEXURE_RULES:
        if rule['keyword'] and rule['keyword'] in lower:
            return rule['family']
    return DEFAULT_FAMILY


def find_tax_column(headers, tax_type, family=DEFAULT_FAMILY):
    """
    Header holding the given tax for a sheet family.
    1. tax pattern AND the family's main-heading pattern
    2. tax pattern only
    3. None
    """
    tax_pat = TAX_TYPE_PATTERNS[tax_type]
    main_pat = _rule(family)['main']
    candidates = [h for h in headers if not is_blank(h)]

    for h in candidates:
        lower = str(h).lower()
        if re.search(tax_pat, lower) and re.search(main_pat, lower):
            return h
    for h in candidates:
        if re.search(tax_pat, str(h).lower()):
            return h
    return None


def _sheet_frame(sheet):
    headers = sheet.effective_headers
    if not headers or not sheet.rows:
        return None, headers
    df = pd.DataFrame(sheet.rows)
    return df, headers


def _totals_for(df, headers, family):
    totals = TaxTotals()
    for tax_type in TAX_TYPES:
        col = find_tax_column(headers, tax_type, family)
        if col is None:
            logger.debug("No %s column among %d headers (%s)", tax_type, len(headers), family)
            continue
        if col in df.columns:
            setattr(totals, tax_type, float(df[col].apply(clean_currency).sum()))
    return totals


def calculate_annexure_totals(sheet):
    sheet = AnnexureSheet.from_dict(sheet)
    df, headers = _sheet_frame(sheet)
    if df is None:
        return TaxTotals()
    return _totals_for(df, headers, sheet_family(sheet.sheet_name))


def find_note_type_column(headers):
    """Most specific note-type heading first."""
    candidates = [h for h in headers if not is_blank(h)]
    for pat in NOTE_TYPE_PATTERNS:
        for h in candidates:
            if re.search(pat, str(h).strip().lower()):
                return h
    return None


def calculate_note_totals(sheet, note_type):
    """
    Totals of the Debit Note or Credit Note rows of a CDNR-style sheet.
    Note sheets always read the generic "tax amount" columns.
    """
    sheet = AnnexureSheet.from_dict(sheet)
    df, headers = _sheet_frame(sheet)
    if df is None:
        return TaxTotals()

    type_col = find_note_type_column(headers)
    if type_col is None or type_col not in df.columns:
        logger.warning("Sheet '%s' has no note type column; %s total taken as 0",
                       sheet.sheet_name, note_type)
        return TaxTotals()

    wanted = str(note_type).strip().upper()
    mask = df[type_col].apply(lambda v: not is_blank(v) and str(v).strip().upper() == wanted)
    return _totals_for(df[mask], headers, DEFAULT_FAMILY)


def calculate_debit_note_totals(sheet):
    return calculate_note_totals(sheet, DEBIT_NOTE)


def calculate_credit_note_totals(sheet):
    return calculate_note_totals(sheet, CREDIT_NOTE)
