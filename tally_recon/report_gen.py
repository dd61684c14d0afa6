# tally_recon/report_gen.py
# Combined export workbook:
#   GSTR2B | Master | TallyProcessed | Mismatched | RCM | Disallow | Rest Sheets
import datetime
import io
import logging
import math

import numpy as np
import pandas as pd

from .action_json import disallow_marker_rows
from .constants import (ACTION_COLUMNS, ACTION_COLUMNS_NO_CREDIT, ACTION_LABELS,
                        BUCKET_TOTAL_LABELS, CHANGE_MODE_HEADERS, LEDGER_COLUMNS,
                        MASTER_EXTRA_HEADERS, META_PREFIX, NO_DATA_TEXT,
                        NO_HEADERS_TEXT, ORIGINAL_RETURN_HEADERS, RCM_LINE_LABEL,
                        RCM_TOTAL_NOTE, ROW_COLORS, SHEET_DISALLOW,
                        SHEET_MASTER, SHEET_MISMATCHED, SHEET_ORIGINAL,
                        SHEET_PROCESSED, SHEET_RCM, SHEET_REST, TOTALS_COLUMNS)
from .data_utils import is_null
from .models import BUCKET_ORDER, AnnexureSheet, Bucket, InvoiceRow
from .tax_aggregator import action_summary

logger = logging.getLogger(__name__)

CATEGORY_HEADER = 'Category'


def _cell(v):
    """Cell-safe value: nulls → None, dates → dd/mm/yyyy text, containers → str."""
    if is_null(v):
        return None
    if isinstance(v, np.generic):
        v = v.item()
    if isinstance(v, (datetime.date, pd.Timestamp)):
        return v.strftime('%d/%m/%Y')
    if isinstance(v, (list, tuple, dict, set)):
        return str(v)
    return v


def _put(ws, r, c, v, fmt=None):
    v = _cell(v)
    if v is None:
        if fmt is not None:
            ws.write_blank(r, c, None, fmt)
        return
    if isinstance(v, bool):
        ws.write_boolean(r, c, v, fmt)
    elif isinstance(v, (int, float)) and math.isfinite(v):
        ws.write_number(r, c, v, fmt)
    else:
        ws.write_string(r, c, str(v), fmt)


def _visible(headers):
    return [h for h in headers if not str(h).startswith(META_PREFIX)]


def _row_headers(rows):
    return _visible(list(InvoiceRow(rows[0]).keys())) if rows else []


def ensure_columns(headers, columns):
    out = list(headers)
    for col in columns:
        if col not in out:
            out.append(col)
    return out


def place_after_change_mode(headers, columns):
    """
    Move `columns` right after the Change Mode column.
    Without a Change Mode column they are only appended when missing.
    """
    idx = next((i for i, h in enumerate(headers) if h in CHANGE_MODE_HEADERS), None)
    if idx is None:
        return ensure_columns(headers, columns)
    before = [h for h in headers[:idx] if h not in columns]
    after = [h for h in headers[idx + 1:] if h not in columns]
    return before + [headers[idx]] + list(columns) + after


def master_headers(processed_headers):
    base = place_after_change_mode(
        [h for h in _visible(processed_headers) if h != CATEGORY_HEADER], ACTION_COLUMNS)
    extra = [h for h in MASTER_EXTRA_HEADERS if h not in base]
    return [CATEGORY_HEADER] + base + extra


def _frame(rows, headers):
    data = []
    for r in rows:
        row = InvoiceRow(r)
        data.append([_cell(row.raw(h)) if h in row else None for h in headers])
    return pd.DataFrame(data, columns=headers)


def _write_no_data(wb, name):
    ws = wb.add_worksheet(name)
    ws.write_string(0, 0, NO_DATA_TEXT)
    return ws


def _write_frame_sheet(writer, name, df, fmt_head):
    df.to_excel(writer, sheet_name=name, index=False)
    ws = writer.sheets[name]
    for ci, h in enumerate(df.columns):
        ws.write_string(0, ci, str(h), fmt_head)
    ws.freeze_panes(1, 0)
    ws.set_column(0, max(len(df.columns) - 1, 0), 18)
    return ws


def _write_row_sheet(writer, fmt_head, name, rows, headers):
    if not rows:
        return _write_no_data(writer.book, name)
    return _write_frame_sheet(writer, name, _frame(rows, headers), fmt_head)


def _write_original_sheet(writer, fmt_head, original_rows):
    if not original_rows:
        return _write_no_data(writer.book, SHEET_ORIGINAL)
    data = [[_cell(r.get(key)) if hasattr(r, 'get') else None for key, _ in ORIGINAL_RETURN_HEADERS]
            for r in original_rows]
    df = pd.DataFrame(data, columns=[label for _, label in ORIGINAL_RETURN_HEADERS])
    return _write_frame_sheet(writer, SHEET_ORIGINAL, df, fmt_head)


def _write_master(wb, result, headers, fmts):
    ws = wb.add_worksheet(SHEET_MASTER)
    for ci, h in enumerate(headers):
        _put(ws, 0, ci, h, fmts['head'])
    r = 1

    # ── Category rows ─────────────────────────────────────────────────────────
    for bucket in BUCKET_ORDER:
        rows = result.classified.rows(bucket)
        fmt = fmts[bucket.value]
        for row in rows:
            for ci, h in enumerate(headers):
                val = bucket.label if h == CATEGORY_HEADER else (row.raw(h) if h in row else None)
                _put(ws, r, ci, val, fmt)
            r += 1
        if rows:
            r += 1
    r += 1

    # ── Category totals ───────────────────────────────────────────────────────
    for ci, h in enumerate([''] + TOTALS_COLUMNS):
        _put(ws, r, ci, h, fmts['head'] if h else None)
    r += 1
    for bucket in BUCKET_ORDER:
        fmt = fmts[bucket.value + '_num']
        _put(ws, r, 0, BUCKET_TOTAL_LABELS[bucket.value], fmt)
        values = result.bucket_totals[bucket].as_list()
        for ci, v in enumerate(values, 1):
            _put(ws, r, ci, v, fmt)
        if bucket is Bucket.REVERSE_CHARGE:
            _put(ws, r, len(values) + 1, RCM_TOTAL_NOTE, fmts[bucket.value])
        r += 1
    _put(ws, r, 0, 'Grand Total', fmts['grand_num'])
    for ci, v in enumerate(result.grand_total.as_list(), 1):
        _put(ws, r, ci, v, fmts['grand_num'])
    r += 2

    # ── Action totals ─────────────────────────────────────────────────────────
    _put(ws, r, 0, 'Action Category', fmts['head'])
    _put(ws, r, 1, 'Amount', fmts['head'])
    r += 1
    for decision, amount in action_summary(result.action_totals):
        _put(ws, r, 0, ACTION_LABELS[decision.value], fmts[decision.value + '_num'])
        _put(ws, r, 1, amount, fmts[decision.value + '_num'])
        r += 1
    _put(ws, r, 0, 'Action Grand Total', fmts['action_grand_num'])
    _put(ws, r, 1, result.action_totals.grand_total, fmts['action_grand_num'])
    r += 3

    # ── ADD / LESS ────────────────────────────────────────────────────────────
    ledger = result.ledger
    for ci, h in enumerate(LEDGER_COLUMNS):
        _put(ws, r, ci, h, fmts['head'])
    r += 1

    def _line(r, first, second, taxes, fmt):
        _put(ws, r, 0, first, fmt)
        _put(ws, r, 1, second, fmt)
        for ci, v in enumerate(taxes.as_list(), 2):
            _put(ws, r, ci, v, fmt)
        return r + 1

    for i, line in enumerate(ledger.add_lines):
        r = _line(r, line.side, line.name, line.taxes,
                  fmts['allowed_num'] if i == 0 else fmts['num'])
    r = _line(r, 'ADD Total', '', ledger.add_total, fmts['grand_num'])
    r += 1
    for line in ledger.less_lines:
        r = _line(r, line.side, line.name, line.taxes, fmts['num'])
    r = _line(r, 'LESS Total', '', ledger.less_total, fmts['grand_num'])
    r = _line(r, 'GRAND TOTAL', '', ledger.grand_total, fmts['grand_num'])
    _line(r, ledger.rcm_payable, RCM_LINE_LABEL, ledger.rcm_taxes, fmts['reverse_charge_num'])

    ws.freeze_panes(1, 1)
    ws.set_column(0, 0, 30)
    ws.set_column(1, max(len(headers) - 1, 1), 16)
    return ws


def _write_rest_sheets(wb, sheets, fmts):
    ws = wb.add_worksheet(SHEET_REST)
    block = []
    for sheet in sheets:
        headers = sheet.effective_headers
        block.append(([sheet.sheet_name], fmts['title']))
        block.append((headers if headers else [NO_HEADERS_TEXT], fmts['head'] if headers else None))
        if sheet.rows:
            for row in sheet.rows:
                if headers:
                    block.append(([row.get(h) for h in headers], None))
                else:
                    block.append((list(row.values()) or [''], None))
        else:
            block.append(([NO_DATA_TEXT], None))
        block.append(([], None))
        block.append(([], None))

    while block and not block[-1][0]:
        block.pop()

    for r, (values, fmt) in enumerate(block):
        for ci, v in enumerate(values):
            _put(ws, r, ci, v, fmt)
    ws.set_column(0, 0, 28)
    return ws


def generate_combined_workbook(result, original_rows=None, processed_headers=None) -> bytes:
    original_rows = list(original_rows or [])
    processed = result.processed_rows
    derived = list(processed_headers) if processed_headers else _row_headers(processed)

    output = io.BytesIO()
    writer = pd.ExcelWriter(output, engine='xlsxwriter',
                            engine_kwargs={'options': {'strings_to_formulas': False,
                                                       'strings_to_urls': False}})
    wb = writer.book

    def _f(**kw): return wb.add_format(kw)
    fmts = {
        'head' : _f(bold=True, bg_color='#4472C4', font_color='white', border=1,
                    align='center', valign='vcenter', text_wrap=True),
        'title': _f(bold=True, bg_color='#BDD7EE', border=1),
        'num'  : _f(border=1, num_format='#,##0.00'),
    }
    for key, color in ROW_COLORS.items():
        fmts[key] = _f(bg_color=color, border=1)
        fmts[key + '_num'] = _f(bg_color=color, border=1, num_format='#,##0.00')

    _write_original_sheet(writer, fmts['head'], original_rows)
    _write_master(wb, result, master_headers(derived), fmts)

    _write_row_sheet(writer, fmts['head'], SHEET_PROCESSED, processed,
                     place_after_change_mode(ensure_columns(_visible(derived), ACTION_COLUMNS),
                                             ACTION_COLUMNS))

    for name, rows, columns in [
        (SHEET_MISMATCHED, result.mismatched_rows,     ACTION_COLUMNS),
        (SHEET_RCM,        result.reverse_charge_rows, ACTION_COLUMNS_NO_CREDIT),
    ]:
        _write_row_sheet(writer, fmts['head'], name, rows,
                         place_after_change_mode(ensure_columns(_row_headers(rows), columns), columns))

    disallow = result.disallow_rows or [InvoiceRow(r) for r in disallow_marker_rows(processed)]
    _write_row_sheet(writer, fmts['head'], SHEET_DISALLOW, disallow,
                     place_after_change_mode(ensure_columns(_row_headers(disallow),
                                                            ACTION_COLUMNS_NO_CREDIT),
                                             ACTION_COLUMNS_NO_CREDIT))

    if result.rest_sheets:
        _write_rest_sheets(wb, [AnnexureSheet.from_dict(s) for s in result.rest_sheets], fmts)

    writer.close()
    logger.debug("Workbook written: %d bytes", len(output.getvalue()))
    return output.getvalue()
