# tally_recon/action_json.py
# Portal "invoice action" feed: one b2b entry per row carrying an
# Accept / Reject / Pending decision.
#
#   { "rtin": <company GSTIN>, "reqtyp": "SAVE", "invdata": { "b2b": [ ... ] } }
#
# The entry field names are fixed by the portal; do not rename them.

import json
import logging
from collections.abc import Mapping

import numpy as np

from .constants import DISALLOW_MARKER, FEED_REQUEST_TYPE, FEED_SOURCE_FORM
from .data_utils import (clean_currency, invoice_type_code, is_blank,
                         is_disallow_ledger, normalize_date_dmy, normalize_gstin,
                         normalize_return_period, round_amount,
                         state_code_from_place)
from .models import ActionDecision, InvoiceRow

logger = logging.getLogger(__name__)

ENTRY_FIELDS = ['stin', 'rtnprd', 'srcform', 'inum', 'idt', 'inv_typ', 'pos', 'val',
                'txval', 'iamt', 'camt', 'samt', 'cess', 'action', 'prev_status']

GROUP_PROCESSED      = 'processed'
GROUP_REVERSE_CHARGE = 'reverse_charge'
GROUP_MISMATCHED     = 'mismatched'
GROUP_DISALLOW       = 'disallow'


class _SafeEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, (np.integer,)):   return int(obj)
        if isinstance(obj, (np.floating,)):  return float(obj)
        if isinstance(obj, (np.bool_,)):     return bool(obj)
        if isinstance(obj, (np.ndarray,)):   return obj.tolist()
        return super().default(obj)


def dumps_action_json(payload) -> str:
    return json.dumps(payload, cls=_SafeEncoder, indent=2)


def _first(*values):
    """First value that is present (None / NaN skipped, '' kept)."""
    for v in values:
        if v is None:
            continue
        if isinstance(v, float) and v != v:
            continue
        return v
    return None


def _text(value):
    return '' if is_blank(value) else str(value).strip()


def disallow_marker_rows(rows, marker=DISALLOW_MARKER):
    """Processed rows whose ledger carries the disallow marker."""
    return [r for r in rows if is_disallow_ledger(InvoiceRow(r).ledger_name, marker)]


def default_row_groups(processed_rows=None, reverse_charge_rows=None,
                       mismatched_rows=None, disallow_rows=None):
    processed_rows = list(processed_rows or [])
    disallow_rows = list(disallow_rows or [])
    if not disallow_rows:
        disallow_rows = disallow_marker_rows(processed_rows)
    return [
        (GROUP_PROCESSED, processed_rows),
        (GROUP_REVERSE_CHARGE, list(reverse_charge_rows or [])),
        (GROUP_MISMATCHED, list(mismatched_rows or [])),
        (GROUP_DISALLOW, disallow_rows),
    ]


def _source_index(row):
    """_sourceRowId, else 1-based slNo − 1; None when neither parses."""
    for val, offset in ((row.source_row_id, 0), (row.sl_no, 1)):
        if is_blank(val):
            continue
        try:
            return int(float(val)) - offset
        except (TypeError, ValueError):
            continue
    return None


def _resolve_original_row(row, original_rows):
    idx = _source_index(row)
    if idx is None or idx < 0 or idx >= len(original_rows):
        return {}
    orig = original_rows[idx]
    return orig if isinstance(orig, Mapping) else {}


def build_invoice_entry(row, original_row, decision):
    row = InvoiceRow(row)
    orig = original_row or {}

    stin = _first(orig.get('gstin'), row.field('gstin'))
    inum = _first(orig.get('invoiceNumber'), row.field('reference_no'))
    idt = _first(orig.get('invoiceDate'), row.field('invoice_date'))
    inv_typ = _first(orig.get('invoiceType'), row.field('invoice_type'))
    pos = _first(orig.get('placeOfSupply'), row.field('place_of_supply'))
    val = _first(row.field('supplier_amount'), orig.get('invoiceValue'))
    txval = _first(orig.get('taxableValue'), row.field('gstr2b_taxable'))
    cess = _first(orig.get('cess'), row.field('cess'))
    period = _first(orig.get('gstrPeriod'), row.field('return_period'))

    return {
        'stin'       : normalize_gstin(stin),
        'rtnprd'     : normalize_return_period(period),
        'srcform'    : FEED_SOURCE_FORM,
        'inum'       : _text(inum),
        'idt'        : normalize_date_dmy(idt),
        'inv_typ'    : invoice_type_code(inv_typ),
        'pos'        : state_code_from_place(pos),
        'val'        : round_amount(val),
        'txval'      : round_amount(txval),
        'iamt'       : round_amount(orig.get('igst')),
        'camt'       : round_amount(orig.get('cgst')),
        'samt'       : round_amount(orig.get('sgst')),
        'cess'       : round_amount(cess),
        'action'     : decision.code,
        'prev_status': '',
    }


def _dedup_key(row, group_name, position):
    row_id = row.row_id
    src = _source_index(row)
    if row_id is None and src is None:
        return ('pos', group_name, position)
    return ('row', None if row_id is None else str(row_id), src)


def build_action_json_payload(row_groups, original_rows=None, company_gstin='',
                              get_action=None):
    """
    row_groups : [(name, rows)] walked in order; first occurrence of a row wins.
    get_action : optional callable(row_dict, group_name, position) → action
                 text, overriding the row's own Action column.
    """
    original_rows = list(original_rows or [])
    entries = []
    seen = set()
    dropped = 0

    for group_name, rows in row_groups:
        for position, raw in enumerate(rows or []):
            row = InvoiceRow(raw)
            if get_action is not None:
                decision = ActionDecision.from_value(get_action(raw, group_name, position))
            else:
                decision = row.action
            if decision is ActionDecision.NONE:
                continue

            key = _dedup_key(row, group_name, position)
            if key in seen:
                continue
            seen.add(key)

            entry = build_invoice_entry(row, _resolve_original_row(row, original_rows), decision)
            if not entry['stin'] or not entry['inum']:
                dropped += 1
                continue
            entries.append(entry)

    if dropped:
        logger.warning("Action feed: %d row(s) without GSTIN / invoice number left out", dropped)
    logger.debug("Action feed: %d entries", len(entries))

    return {
        'rtin'   : normalize_gstin(company_gstin),
        'reqtyp' : FEED_REQUEST_TYPE,
        'invdata': {'b2b': entries},
    }


def feed_totals(payload):
    """Entry count and summed value per action code, for CLI reporting."""
    out = {}
    for e in payload['invdata']['b2b']:
        count, total = out.get(e['action'], (0, 0.0))
        out[e['action']] = (count + 1, total + clean_currency(e['val']))
    return out
