"""
Shared fixtures: Tally-side rows as the upstream edit layer hands them over,
plus GSTR-2B source rows and annexure sheets.
"""

import pytest


def _tally_row(ref, supplier, gstin, invoice, amount, igst=0.0, cgst=0.0, sgst=0.0,
               cess=0.0, slab='18%', taxable=None, **extra):
    row = {
        'referenceNo': ref,
        'supplierName': supplier,
        'gstinUin': gstin,
        'invoiceNumber': invoice,
        'supplierAmount': amount,
        'invoiceAmount': amount,
        f'IGST Rate {slab}': igst,
        f'CGST Rate {slab}': cgst,
        f'SGST/UTGST Rate {slab}': sgst,
        'Cess': cess,
        'GSTR-2B Invoice Value': amount,
        'GSTR-2B Taxable Value': taxable if taxable is not None else round(amount - igst - cgst - sgst - cess, 2),
        'Ledger Name': 'Purchase @18%',
        'Change Mode': 'Auto',
    }
    row.update(extra)
    return row


@pytest.fixture
def make_row():
    return _tally_row


@pytest.fixture
def processed_rows(make_row):
    return [
        make_row('INV-101', 'Acme Traders', '27AAACA1234A1Z5', 'INV-101', 11800.0,
                 cgst=900.0, sgst=900.0, _id='p1', slNo=1, Action='Accept'),
        make_row('INV-102', 'Bharat Steel', '24AABCB5678B1Z2', 'INV-102', 5900.0,
                 igst=900.0, _id='p2', slNo=2, Action='Pending'),
        make_row('F-77', 'Fast Freight', '27AAFCF4321F1Z9', 'F-77', 2360.0,
                 cgst=180.0, sgst=180.0, _id='p3', slNo=3,
                 **{'Ledger Name': 'Freight [disallow]', 'Action': 'Reject'}),
    ]


@pytest.fixture
def mismatched_rows(make_row):
    return [
        make_row('M-1', 'Chennai Paper', '33AAECC1111C1Z1', 'M-1', 1180.0,
                 cgst=90.0, sgst=90.0, _id='m1', slNo=4,
                 **{'Accept Credit': 'Yes', 'Action': 'Accept'}),
        make_row('M-2', 'Delhi Tools', '07AADCD2222D1Z3', 'M-2', 2360.0,
                 igst=360.0, _id='m2', slNo=5, **{'Accept Credit': 'No'}),
    ]


@pytest.fixture
def reverse_charge_rows(make_row):
    return [
        make_row('R-9', 'Legal Advisors', '27AAGFL9999L1Z4', 'R-9', 50000.0,
                 cgst=4500.0, sgst=4500.0, taxable=50000.0, _id='r1', slNo=6),
    ]


@pytest.fixture
def original_rows():
    """GSTR-2B rows, positionally referenced through slNo / _sourceRowId."""
    base = {
        'invoiceType': 'Regular',
        'invoiceDate': '15/10/2025',
        'placeOfSupply': 'Maharashtra',
        'reverseCharge': 'No',
        'gstrPeriod': "Oct'25",
        'itcAvailability': 'Yes',
        'cess': 0,
    }
    rows = [
        {'gstin': '27AAACA1234A1Z5', 'tradeName': 'Acme Traders', 'invoiceNumber': 'INV-101',
         'invoiceValue': 11800.0, 'taxableValue': 10000.0, 'igst': 0, 'cgst': 900.0, 'sgst': 900.0},
        {'gstin': '24AABCB5678B1Z2', 'tradeName': 'Bharat Steel', 'invoiceNumber': 'INV-102',
         'invoiceValue': 5900.0, 'taxableValue': 5000.0, 'igst': 900.0, 'cgst': 0, 'sgst': 0,
         'placeOfSupply': '24-Gujarat'},
        {'gstin': '27AAFCF4321F1Z9', 'tradeName': 'Fast Freight', 'invoiceNumber': 'F-77',
         'invoiceValue': 2360.0, 'taxableValue': 2000.0, 'igst': 0, 'cgst': 180.0, 'sgst': 180.0},
        {'gstin': '33AAECC1111C1Z1', 'tradeName': 'Chennai Paper', 'invoiceNumber': 'M-1',
         'invoiceValue': 1180.0, 'taxableValue': 1000.0, 'igst': 0, 'cgst': 90.0, 'sgst': 90.0,
         'placeOfSupply': 'Tamil Nadu'},
        {'gstin': '07AADCD2222D1Z3', 'tradeName': 'Delhi Tools', 'invoiceNumber': 'M-2',
         'invoiceValue': 2360.0, 'taxableValue': 2000.0, 'igst': 360.0, 'cgst': 0, 'sgst': 0,
         'placeOfSupply': 'Delhi (National Capital Territory)'},
        {'gstin': '27AAGFL9999L1Z4', 'tradeName': 'Legal Advisors', 'invoiceNumber': 'R-9',
         'invoiceValue': 59000.0, 'taxableValue': 50000.0, 'igst': 0, 'cgst': 4500.0, 'sgst': 4500.0,
         'reverseCharge': 'Yes'},
    ]
    return [{**base, **r} for r in rows]


@pytest.fixture
def eco_sheet():
    return {
        'sheetName': 'ECO',
        'headers': ['GSTIN of ECO', 'Integrated Tax(Tax Amount)', 'Central Tax(Tax Amount)',
                    'State/UT Tax(Tax Amount)', 'Cess(Tax Amount)'],
        'rows': [
            {'GSTIN of ECO': '27AAACE0000E1Z1', 'Integrated Tax(Tax Amount)': 100,
             'Central Tax(Tax Amount)': 0, 'State/UT Tax(Tax Amount)': 0, 'Cess(Tax Amount)': 5},
            {'GSTIN of ECO': '27AAACE0000E1Z1', 'Integrated Tax(Tax Amount)': '1,000.50',
             'Central Tax(Tax Amount)': 20, 'State/UT Tax(Tax Amount)': 20, 'Cess(Tax Amount)': None},
        ],
    }


@pytest.fixture
def cdnr_sheet():
    headers = ['GSTIN of Supplier', 'Note type(Credit note/Debit note details)',
               'Integrated Tax(Tax Amount)', 'Central Tax(Tax Amount)',
               'State/UT Tax(Tax Amount)', 'Cess(Tax Amount)']
    nt = headers[1]

    def note(kind, igst, cgst, sgst):
        return {'GSTIN of Supplier': '27AAACA1234A1Z5', nt: kind,
                'Integrated Tax(Tax Amount)': igst, 'Central Tax(Tax Amount)': cgst,
                'State/UT Tax(Tax Amount)': sgst, 'Cess(Tax Amount)': 0}

    return {
        'sheetName': 'B2B-CDNR',
        'headers': headers,
        'rows': [
            note('Debit Note', 0, 50, 50),
            note(' credit note ', 0, 30, 30),
            note('CREDIT NOTE', 200, 0, 0),
            note('Refund Voucher', 999, 999, 999),
        ],
    }
