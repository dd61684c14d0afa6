# tally_recon/tax_aggregator.py
# Bucket / grand / action totals over classified rows.
# Rows are loaded into a frame once; every money column goes through
# clean_currency so text like "1,200.50" and junk like "N/A" both behave.

import logging

import pandas as pd

from .constants import (CESS_COLUMN, CUSTOM_TAX_COLUMNS, ROW_FIELD_ALIASES,
                        SLAB_TAX_COLUMNS)
from .data_utils import clean_currency
from .models import (BUCKET_ORDER, ActionDecision, ActionTotals, CategoryTotals,
                     InvoiceRow, TaxTotals)

logger = logging.getLogger(__name__)


def _to_frame(rows):
    return pd.DataFrame([InvoiceRow(r).to_dict(include_meta=True) for r in rows])


def _money(df, col):
    if col not in df.columns:
        return 0.0
    return float(df[col].apply(clean_currency).sum())


def _money_cols(df, cols):
    return sum(_money(df, c) for c in cols)


def _aliased(df, name):
    """
    Per-row value of an aliased field: first alias column with a value wins,
    as InvoiceRow.field does for a single row.
    """
    out = pd.Series([None] * len(df), index=df.index, dtype=object)
    for col in reversed(ROW_FIELD_ALIASES[name]):
        if col in df.columns:
            out = df[col].where(df[col].notna(), out)
    return out


def _aliased_money(df, name):
    if df.empty:
        return 0.0
    return float(_aliased(df, name).apply(clean_currency).sum())


def _tax_totals(df):
    if df.empty:
        return TaxTotals()
    return TaxTotals(
        igst=_money_cols(df, SLAB_TAX_COLUMNS['igst']) + _money(df, CUSTOM_TAX_COLUMNS['igst']),
        cgst=_money_cols(df, SLAB_TAX_COLUMNS['cgst']) + _money(df, CUSTOM_TAX_COLUMNS['cgst']),
        sgst=_money_cols(df, SLAB_TAX_COLUMNS['sgst']) + _money(df, CUSTOM_TAX_COLUMNS['sgst']),
        cess=_money(df, CESS_COLUMN),
    )


def sum_tax_fields(rows):
    return _tax_totals(_to_frame(rows))


def calculate_category_totals(rows):
    df = _to_frame(rows)
    if df.empty:
        return CategoryTotals()
    taxes = _tax_totals(df)
    return CategoryTotals(
        gstr2b_invoice=_aliased_money(df, 'gstr2b_invoice'),
        gstr2b_taxable=_aliased_money(df, 'gstr2b_taxable'),
        igst=taxes.igst,
        cgst=taxes.cgst,
        sgst=taxes.sgst,
        cess=taxes.cess,
        supplier_amount=_aliased_money(df, 'supplier_amount'),
        invoice_amount=_aliased_money(df, 'invoice_amount'),
    )


def calculate_bucket_totals(classified):
    totals = {b: calculate_category_totals(classified.rows(b)) for b in BUCKET_ORDER}
    for b in BUCKET_ORDER:
        logger.debug("%s: %d rows, igst=%.2f cgst=%.2f sgst=%.2f cess=%.2f",
                     b.label, len(classified.rows(b)), totals[b].igst,
                     totals[b].cgst, totals[b].sgst, totals[b].cess)
    return totals


def grand_total(bucket_totals):
    return sum((bucket_totals[b] for b in BUCKET_ORDER), CategoryTotals())


def calculate_action_totals(rows):
    """
    Supplier amount per Action decision; every row lands in exactly one.
    The engine passes every classified row, so Mismatched and RCM rows that
    never appear in Processed are counted too.
    """
    totals = ActionTotals()
    for r in rows:
        row = InvoiceRow(r)
        decision = row.action
        amount = clean_currency(row.field('supplier_amount'))
        setattr(totals, decision.value, totals.get(decision) + amount)
    return totals


def action_summary(totals):
    """[(decision, amount)] in display order."""
    return [(d, totals.get(d)) for d in (ActionDecision.ACCEPT, ActionDecision.REJECT,
                                         ActionDecision.PENDING, ActionDecision.NONE)]
