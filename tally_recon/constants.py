# tally_recon/constants.py

# ── Row field aliases ─────────────────────────────────────────────────────────
# Each key = field the engine understands
# Each value = column names it may appear under (first non-null wins)
ROW_FIELD_ALIASES = {
    'reference_no'    : ['referenceNo', 'Reference No.', 'vchNo', 'Vch No'],
    'supplier_name'   : ['supplierName', 'Supplier Name'],
    'gstin'           : ['gstinUin', 'GSTIN/UIN', 'gstin', 'GSTIN'],
    'invoice_number'  : ['invoiceNumber', 'Invoice Number'],
    'supplier_amount' : ['supplierAmount', 'Supplier Amount', 'invoiceAmount', 'Invoice Amount'],
    'invoice_amount'  : ['invoiceAmount', 'Invoice Amount'],
    'invoice_date'    : ['referenceDate', 'date', 'Invoice Date'],
    'place_of_supply' : ['supplierState', 'state'],
    'invoice_type'    : ['gstRegistrationType', 'vchType'],
    'ledger_name'     : ['Ledger Name'],
    'accept_credit'   : ['Accept Credit'],
    'itc_availability': ['ITC Availability'],
    'action'          : ['Action'],
    'gstr2b_invoice'  : ['GSTR-2B Invoice Value'],
    'gstr2b_taxable'  : ['GSTR-2B Taxable Value'],
    'return_period'   : ['GSTR-1/1A/IFF/GSTR-5 Period'],
    'cess'            : ['Cess'],
}

META_PREFIX = '_'

# ── Rate slabs ────────────────────────────────────────────────────────────────
RATE_SLABS = ['5%', '12%', '18%', '28%']

SLAB_TAX_COLUMNS = {
    'igst': [f'IGST Rate {s}' for s in RATE_SLABS],
    'cgst': [f'CGST Rate {s}' for s in RATE_SLABS],
    'sgst': [f'SGST/UTGST Rate {s}' for s in RATE_SLABS],
}

CUSTOM_TAX_COLUMNS = {
    'igst': 'Custom IGST Rate',
    'cgst': 'Custom CGST Rate',
    'sgst': 'Custom SGST/UTGST',
}

CESS_COLUMN = 'Cess'

# ── Classification ────────────────────────────────────────────────────────────
DISALLOW_MARKER = '[disallow]'

BUCKET_LABELS = {
    'allowed'            : 'Allowed (Green)',
    'mismatched_rejected': 'Mismatched - Accept Credit No',
    'reverse_charge'     : 'RCM',
    'disallowed'         : 'Disallow',
}

BUCKET_TOTAL_LABELS = {
    'allowed'            : 'Green Total',
    'mismatched_rejected': 'Orange Total',
    'reverse_charge'     : 'Purple Total',
    'disallowed'         : 'Red Total',
}

RCM_TOTAL_NOTE = 'rcm paid by party'

ACTION_LABELS = {
    'accept' : 'Action Accept Total',
    'reject' : 'Action Reject Total',
    'pending': 'Action Pending Total',
    'none'   : 'Action No Action Total',
}

ACTION_CODES = {'accept': 'A', 'reject': 'R', 'pending': 'P'}

# ── Workbook ──────────────────────────────────────────────────────────────────
SHEET_ORIGINAL    = 'GSTR2B'
SHEET_MASTER      = 'Master'
SHEET_PROCESSED   = 'TallyProcessed'
SHEET_MISMATCHED  = 'Mismatched'
SHEET_RCM         = 'RCM'
SHEET_DISALLOW    = 'Disallow'
SHEET_REST        = 'Rest Sheets'

NO_DATA_TEXT    = 'No data available'
NO_HEADERS_TEXT = 'No headers detected'

CHANGE_MODE_HEADERS = ('Change Mode', 'changeMode')
ACTION_COLUMNS      = ['Accept Credit', 'Action', 'Action Reason', 'Narration']
ACTION_COLUMNS_NO_CREDIT = ['Action', 'Action Reason', 'Narration']
MASTER_EXTRA_HEADERS = ['GSTR-2B Invoice Value', 'GSTR-2B Taxable Value', 'ITC Availability']

TOTALS_COLUMNS = ['GSTR-2B Invoice', 'GSTR-2B Taxable', 'IGST Total', 'CGST Total',
                  'SGST Total', 'CESS Total', 'Supplier Amount', 'Invoice Amount']

LEDGER_COLUMNS = ['ADD/LESS', 'Name', 'IGST Total', 'CGST Total', 'SGST Total',
                  'CESS Total', 'Final Total']

ROW_COLORS = {
    'allowed'            : '#E4F8E5',
    'mismatched_rejected': '#FFEAD6',
    'reverse_charge'     : '#ECE2FF',
    'disallowed'         : '#FFE0E0',
    'grand'              : '#E0F2FF',
    'accept'             : '#D6F5E3',
    'reject'             : '#F9D6D6',
    'pending'            : '#FFF5D6',
    'none'               : '#F2F4F7',
    'action_grand'       : '#E3F0FF',
}

# Original GSTR-2B row keys → display labels for the first sheet
ORIGINAL_RETURN_HEADERS = [
    ('gstin',           'GSTIN of supplier'),
    ('tradeName',       'Trade/Legal name'),
    ('invoiceNumber',   'Invoice number'),
    ('invoiceType',     'Invoice type'),
    ('invoiceDate',     'Invoice Date'),
    ('invoiceValue',    'Invoice Value(₹)'),
    ('placeOfSupply',   'Place of supply'),
    ('reverseCharge',   'Supply Attract Reverse Charge'),
    ('taxableValue',    'Taxable Value (₹)'),
    ('igst',            'Integrated Tax(₹)'),
    ('cgst',            'Central Tax(₹)'),
    ('sgst',            'State/UT Tax(₹)'),
    ('cess',            'Cess(₹)'),
    ('gstrPeriod',      'GSTR-1/IFF/GSTR-5 Period'),
    ('gstrFilingDate',  'GSTR-1/IFF/GSTR-5 Filing Date'),
    ('itcAvailability', 'ITC Availability'),
    ('reason',          'Reason'),
]

# ── Annexure header matching ──────────────────────────────────────────────────
# Headers arrive as "subheading(main heading)" free text, e.g.
# "Integrated Tax(Tax Amount)" or "Central Tax(Amount of tax (₹))".
TAX_TYPE_PATTERNS = {
    'igst': r'integrated.*tax|igst',
    'cgst': r'central.*tax|cgst',
    'sgst': r'state.*ut.*tax|sgst|utgst',
    'cess': r'cess',
}

# sheet family → sheet-name keyword + main heading pattern
# Order matters: the first family whose keyword is in the sheet name wins.
ANNEXURE_RULES = [
    {'family': 'isd',     'keyword': 'isd',  'main': r'input.*tax.*distribution.*isd'},
    {'family': 'impg',    'keyword': 'impg', 'main': r'amount.*tax'},
    {'family': 'default', 'keyword': '',     'main': r'tax.*amount'},
]

NOTE_TYPE_PATTERNS = [
    r'note.*type.*credit.*note.*debit.*note.*details',
    r'note.*type.*debit.*note.*details',
    r'^note.*type$',
]

DEBIT_NOTE  = 'Debit Note'
CREDIT_NOTE = 'Credit Note'

# ── Reconciliation ledger order ───────────────────────────────────────────────
AMENDMENT_SHEET     = 'B2BA'
AMENDMENT_LABEL     = 'AMENDED BILL (B2BA)'
ALLOWED_LINE_LABEL  = 'Total Credit B2B'
DISALLOW_LINE_LABEL = 'DISALLOW'
RCM_LINE_LABEL      = 'RCM PAY AMOUNT'

TAX_AMOUNT_SHEETS = ['ECO', 'ECOA', 'B2B (ITC Reversal)', 'B2BA (ITC Reversal)',
                     'B2B(Rejected)', 'B2BA(Rejected)', 'ECO(Rejected)', 'ECOA(Rejected)']
ISD_SHEETS        = ['ISD', 'ISDA', 'ISD(Rejected)', 'ISDA(Rejected)']
IMPG_SHEETS       = ['IMPG', 'IMPGA', 'IMPGSEZ', 'IMPGSEZA']
NOTE_SHEETS       = ['B2B-CDNR', 'B2B-CDNRA', 'B2B-DNR', 'B2B-DNRA',
                     'B2B-CDNR(Rejected)', 'B2B-CDNRA(Rejected)']

# ── Action feed ───────────────────────────────────────────────────────────────
FEED_SOURCE_FORM = 'R1'
FEED_REQUEST_TYPE = 'SAVE'

MONTHS = {
    'jan': '01', 'january': '01',
    'feb': '02', 'february': '02',
    'mar': '03', 'march': '03',
    'apr': '04', 'april': '04',
    'may': '05',
    'jun': '06', 'june': '06',
    'jul': '07', 'july': '07',
    'aug': '08', 'august': '08',
    'sep': '09', 'sept': '09', 'september': '09',
    'oct': '10', 'october': '10',
    'nov': '11', 'november': '11',
    'dec': '12', 'december': '12',
}

GST_STATE_CODES = {
    'jammu and kashmir'                       : '01',
    'himachal pradesh'                        : '02',
    'punjab'                                  : '03',
    'chandigarh'                              : '04',
    'uttarakhand'                             : '05',
    'haryana'                                 : '06',
    'delhi'                                   : '07',
    'rajasthan'                               : '08',
    'uttar pradesh'                           : '09',
    'bihar'                                   : '10',
    'sikkim'                                  : '11',
    'arunachal pradesh'                       : '12',
    'nagaland'                                : '13',
    'manipur'                                 : '14',
    'mizoram'                                 : '15',
    'tripura'                                 : '16',
    'meghalaya'                               : '17',
    'assam'                                   : '18',
    'west bengal'                             : '19',
    'jharkhand'                               : '20',
    'odisha'                                  : '21',
    'chhattisgarh'                            : '22',
    'madhya pradesh'                          : '23',
    'gujarat'                                 : '24',
    'dadra and nagar haveli and daman and diu': '26',
    'maharashtra'                             : '27',
    'karnataka'                               : '29',
    'goa'                                     : '30',
    'lakshadweep'                             : '31',
    'kerala'                                  : '32',
    'tamil nadu'                              : '33',
    'puducherry'                              : '34',
    'andaman and nicobar islands'             : '35',
    'telangana'                               : '36',
    'andhra pradesh'                          : '37',
    'ladakh'                                  : '38',
    'other territory'                         : '97',
    'centre jurisdiction'                     : '99',
}
