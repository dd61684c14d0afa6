"""
Tests for the combined export workbook, read back with openpyxl.
"""

import datetime
import io

import pytest
from openpyxl import load_workbook

from tally_recon.constants import ACTION_COLUMNS, ACTION_COLUMNS_NO_CREDIT
from tally_recon.core_engine import run_tally_reconciliation
from tally_recon.report_gen import (generate_combined_workbook, master_headers,
                                    place_after_change_mode)


def _sheets(data):
    wb = load_workbook(io.BytesIO(data), read_only=False)
    return {ws.title: [list(r) for r in ws.iter_rows(values_only=True)] for ws in wb.worksheets}


def _trim(row):
    while row and row[-1] is None:
        row = row[:-1]
    return row


def _row_starting(rows, first):
    return next(r for r in rows if r and r[0] == first)


def _after_change_mode(headers, n):
    idx = headers.index('Change Mode')
    return headers[idx + 1: idx + 1 + n]


@pytest.fixture
def result(processed_rows, mismatched_rows, reverse_charge_rows, eco_sheet, cdnr_sheet):
    return run_tally_reconciliation(processed_rows, mismatched_rows, reverse_charge_rows, [],
                                    [eco_sheet, cdnr_sheet])


@pytest.fixture
def sheets(result, original_rows):
    return _sheets(generate_combined_workbook(result, original_rows))


class TestHeaderHelpers:

    def test_place_after_change_mode(self):
        headers = ['A', 'Action', 'Change Mode', 'B']
        assert place_after_change_mode(headers, ['Action', 'Narration']) == \
            ['A', 'Change Mode', 'Action', 'Narration', 'B']

    def test_without_change_mode_only_appends(self):
        assert place_after_change_mode(['A', 'Action'], ['Action', 'Narration']) == \
            ['A', 'Action', 'Narration']

    def test_master_headers(self):
        headers = master_headers(['_id', 'referenceNo', 'Category', 'Change Mode',
                                  'GSTR-2B Invoice Value'])
        assert headers == ['Category', 'referenceNo', 'Change Mode', *ACTION_COLUMNS,
                           'GSTR-2B Invoice Value', 'GSTR-2B Taxable Value', 'ITC Availability']


class TestSheetSet:

    def test_sheet_order(self, sheets):
        assert list(sheets) == ['GSTR2B', 'Master', 'TallyProcessed', 'Mismatched',
                                'RCM', 'Disallow', 'Rest Sheets']

    def test_no_rest_sheet_without_annexures(self, processed_rows):
        result = run_tally_reconciliation(processed_rows, [], [], [])
        assert 'Rest Sheets' not in _sheets(generate_combined_workbook(result))

    def test_empty_collections(self):
        sheets = _sheets(generate_combined_workbook(run_tally_reconciliation([], [], [], [])))
        for name in ('GSTR2B', 'TallyProcessed', 'Mismatched', 'RCM', 'Disallow'):
            assert sheets[name] == [['No data available']]
        assert sheets['Master'][0][0] == 'Category'


class TestMasterSheet:

    def test_headers(self, sheets):
        headers = _trim(sheets['Master'][0])
        assert headers[0] == 'Category'
        assert _after_change_mode(headers, 4) == ACTION_COLUMNS
        assert headers[-1] == 'ITC Availability'
        assert '_id' not in headers

    def test_category_rows(self, sheets):
        labels = [r[0] for r in sheets['Master']]
        assert labels.count('Allowed (Green)') == 3
        assert labels.count('Mismatched - Accept Credit No') == 1
        assert labels.count('RCM') == 1
        assert labels.count('Disallow') == 1

    def test_bucket_totals(self, sheets):
        rows = sheets['Master']
        green = _row_starting(rows, 'Green Total')
        assert green[3:6] == [900, 990, 990]
        assert green[7] == 18880
        purple = _row_starting(rows, 'Purple Total')
        assert purple[7] == 50000
        assert purple[9] == 'rcm paid by party'
        assert _row_starting(rows, 'Orange Total')[3] == 360
        assert _row_starting(rows, 'Red Total')[4] == 180
        assert _row_starting(rows, 'Grand Total')[7] == 73600

    def test_action_totals(self, sheets):
        rows = sheets['Master']
        assert _row_starting(rows, 'Action Category')[:2] == ['Action Category', 'Amount']
        amounts = {r[0]: r[1] for r in rows if r[0] and str(r[0]).startswith('Action ')}
        assert amounts['Action Accept Total'] == 12980
        assert amounts['Action Reject Total'] == 2360
        assert amounts['Action Pending Total'] == 5900
        assert amounts['Action No Action Total'] == 52360
        assert amounts['Action Grand Total'] == 73600

    def test_ledger_block(self, sheets):
        rows = sheets['Master']
        by_name = {r[1]: r for r in rows if r[0] in ('ADD', 'LESS')}
        assert by_name['Total Credit B2B'][2:5] == [900, 990, 990]
        assert by_name['DISALLOW'][0] == 'LESS'
        assert by_name['DISALLOW'][2:5] == [360, 180, 180]
        assert by_name['CREDIT NOTE B2B-CDNR'][2] == 200
        labels = [r[0] for r in rows]
        assert labels.index('ADD Total') < labels.index('LESS Total') < labels.index('GRAND TOTAL')

    def test_rcm_line_is_last(self, sheets):
        assert _trim(sheets['Master'][-1]) == [50000, 'RCM PAY AMOUNT', 0, 4500, 4500, 0, 9000]


class TestRowSheets:

    def test_original_sheet(self, sheets):
        rows = sheets['GSTR2B']
        assert rows[0][:3] == ['GSTIN of supplier', 'Trade/Legal name', 'Invoice number']
        assert rows[1][:3] == ['27AAACA1234A1Z5', 'Acme Traders', 'INV-101']
        assert len(rows) == 7

    def test_processed_columns(self, sheets):
        headers = _trim(sheets['TallyProcessed'][0])
        assert _after_change_mode(headers, 4) == ACTION_COLUMNS
        assert '_id' not in headers
        assert len(sheets['TallyProcessed']) == 4

    def test_rcm_sheet_has_no_accept_credit(self, sheets):
        headers = _trim(sheets['RCM'][0])
        assert _after_change_mode(headers, 3) == ACTION_COLUMNS_NO_CREDIT
        assert 'Accept Credit' not in headers

    def test_disallow_sheet_falls_back_to_marker_rows(self, sheets):
        rows = sheets['Disallow']
        assert len(rows) == 2
        assert rows[1][rows[0].index('referenceNo')] == 'F-77'

    def test_dates_written_as_text(self, make_row):
        row = make_row('D-1', 'S', 'G', 'D-1', 100.0, referenceDate=datetime.date(2025, 10, 5))
        sheets = _sheets(generate_combined_workbook(run_tally_reconciliation([row], [], [], [])))
        rows = sheets['TallyProcessed']
        assert rows[1][rows[0].index('referenceDate')] == '05/10/2025'

    def test_formula_like_text_stays_text(self, make_row):
        row = make_row('=SUM(A1)', 'S', 'G', 'X', 100.0)
        sheets = _sheets(generate_combined_workbook(run_tally_reconciliation([row], [], [], [])))
        assert sheets['TallyProcessed'][1][0] == '=SUM(A1)'


class TestRestSheets:

    def test_layout(self, sheets, eco_sheet, cdnr_sheet):
        rows = [_trim(r) for r in sheets['Rest Sheets']]
        assert rows[0] == ['ECO']
        assert rows[1] == eco_sheet['headers']
        assert rows[2][1] == 100
        assert rows[4] == [] and rows[5] == []
        assert rows[6] == ['B2B-CDNR']
        assert rows[7] == cdnr_sheet['headers']
        assert len(rows) == 12

    def test_empty_sheet_placeholders(self, processed_rows):
        result = run_tally_reconciliation(processed_rows, [], [], [], [{'sheetName': 'IMPG'}])
        rows = [_trim(r) for r in _sheets(generate_combined_workbook(result))['Rest Sheets']]
        assert rows == [['IMPG'], ['No headers detected'], ['No data available']]
