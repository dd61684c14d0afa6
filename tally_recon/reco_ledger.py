# tally_recon/reco_ledger.py
# ADD / LESS reconciliation table for the Master sheet.
#
#   ADD  : Total Credit B2B, B2BA, tax-amount annexures, ISD, IMPG, debit notes
#   LESS : DISALLOW (Disallow + Mismatched rejected), credit notes
#   GRAND TOTAL = ADD − LESS
# RCM payable is reported next to the table and never netted into it.

import logging
import re

from .annexure_processor import (calculate_annexure_totals,
                                 calculate_credit_note_totals,
                                 calculate_debit_note_totals)
from .constants import (ALLOWED_LINE_LABEL, AMENDMENT_LABEL, AMENDMENT_SHEET,
                        DISALLOW_LINE_LABEL, IMPG_SHEETS, ISD_SHEETS,
                        NOTE_SHEETS, TAX_AMOUNT_SHEETS)
from .models import AnnexureSheet, Bucket, LedgerLine, ReconLedger, TaxTotals

logger = logging.getLogger(__name__)

ADD = 'ADD'
LESS = 'LESS'


def _sheet_key(name):
    return re.sub(r'\s+', '', str(name or '')).lower()


def find_sheet(sheets, name):
    """Case-insensitive, whitespace-insensitive sheet lookup."""
    key = _sheet_key(name)
    for sheet in sheets:
        if _sheet_key(sheet.sheet_name) == key:
            return sheet
    return None


def build_reco_ledger(bucket_totals, rest_sheets=None):
    sheets = [AnnexureSheet.from_dict(s) for s in (rest_sheets or [])]

    add_lines = [LedgerLine(ADD, ALLOWED_LINE_LABEL, bucket_totals[Bucket.ALLOWED].taxes)]

    amended = find_sheet(sheets, AMENDMENT_SHEET)
    add_lines.append(LedgerLine(
        ADD, AMENDMENT_LABEL,
        calculate_annexure_totals(amended) if amended else TaxTotals()))

    for name in TAX_AMOUNT_SHEETS + ISD_SHEETS + IMPG_SHEETS:
        sheet = find_sheet(sheets, name)
        if sheet is not None:
            add_lines.append(LedgerLine(ADD, name, calculate_annexure_totals(sheet)))

    note_sheets = [(name, find_sheet(sheets, name)) for name in NOTE_SHEETS]
    note_sheets = [(name, s) for name, s in note_sheets if s is not None]

    for name, sheet in note_sheets:
        debit = calculate_debit_note_totals(sheet)
        if debit.total > 0:
            add_lines.append(LedgerLine(ADD, f'DEBIT NOTE {name}', debit))

    disallow_taxes = (bucket_totals[Bucket.DISALLOWED].taxes
                      + bucket_totals[Bucket.MISMATCHED_REJECTED].taxes)
    less_lines = [LedgerLine(LESS, DISALLOW_LINE_LABEL, disallow_taxes)]

    for name, sheet in note_sheets:
        credit = calculate_credit_note_totals(sheet)
        if credit.total > 0:
            less_lines.append(LedgerLine(LESS, f'CREDIT NOTE {name}', credit))

    rc = bucket_totals[Bucket.REVERSE_CHARGE]
    ledger = ReconLedger(add_lines=add_lines, less_lines=less_lines,
                         rcm_payable=rc.supplier_amount, rcm_taxes=rc.taxes)

    logger.debug("Ledger: %d ADD lines, %d LESS lines, grand %.2f",
                 len(add_lines), len(less_lines), ledger.grand_total.total)
    return ledger
