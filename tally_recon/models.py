# tally_recon/models.py
# Value types passed between the engine stages.
# Rows stay caller-owned dicts; InvoiceRow only reads through them.

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, List

from .constants import (ACTION_CODES, BUCKET_LABELS, META_PREFIX,
                        ROW_FIELD_ALIASES)
from .data_utils import is_blank, is_null
from .exceptions import InvalidCollectionError


class Bucket(Enum):
    ALLOWED             = 'allowed'
    MISMATCHED_REJECTED = 'mismatched_rejected'
    REVERSE_CHARGE      = 'reverse_charge'
    DISALLOWED          = 'disallowed'

    @property
    def label(self):
        return BUCKET_LABELS[self.value]


# Master sheet / totals order
BUCKET_ORDER = [Bucket.ALLOWED, Bucket.MISMATCHED_REJECTED,
                Bucket.REVERSE_CHARGE, Bucket.DISALLOWED]


class ActionDecision(Enum):
    ACCEPT  = 'accept'
    REJECT  = 'reject'
    PENDING = 'pending'
    NONE    = 'none'

    @classmethod
    def from_value(cls, value):
        """Case-insensitive exact match; blank or anything else is NONE."""
        if is_blank(value):
            return cls.NONE
        lower = str(value).strip().lower()
        for member in (cls.ACCEPT, cls.REJECT, cls.PENDING):
            if lower == member.value:
                return member
        return cls.NONE

    @property
    def code(self):
        return ACTION_CODES.get(self.value, '')


class InvoiceRow:
    """
    Read-only view over one caller row.

    Recognized fields resolve through ROW_FIELD_ALIASES (first alias holding
    a non-null value wins). Every other key is a pass-through display field
    and is only ever copied back out via to_dict().
    """

    __slots__ = ('_data',)

    def __init__(self, data):
        if isinstance(data, InvoiceRow):
            data = data._data
        if not isinstance(data, Mapping):
            raise InvalidCollectionError('row', data)
        self._data = data

    def raw(self, key, default=None):
        val = self._data.get(key)
        return default if is_null(val) else val

    def field(self, name, default=None):
        for key in ROW_FIELD_ALIASES[name]:
            val = self._data.get(key)
            if not is_null(val):
                return val
        return default

    def __getitem__(self, key):
        return self._data[key]

    def __contains__(self, key):
        return key in self._data

    def keys(self):
        return self._data.keys()

    @property
    def ledger_name(self):
        return self.field('ledger_name')

    @property
    def accept_credit(self):
        return self.field('accept_credit')

    @property
    def itc_availability(self):
        return self.field('itc_availability')

    @property
    def action(self):
        return ActionDecision.from_value(self.field('action'))

    @property
    def row_id(self):
        return self.raw('_id')

    @property
    def source_row_id(self):
        return self.raw('_sourceRowId')

    @property
    def sl_no(self):
        return self.raw('slNo')

    def to_dict(self, include_meta=False):
        if include_meta:
            return dict(self._data)
        return {k: v for k, v in self._data.items() if not str(k).startswith(META_PREFIX)}

    def __repr__(self):
        return f'InvoiceRow({self.field("invoice_number")!r}, {self.field("gstin")!r})'


@dataclass
class AnnexureSheet:
    sheet_name: str
    headers: List[str] = field(default_factory=list)
    rows: List[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        """Accepts the {sheetName, headers, rows} wire shape."""
        if isinstance(data, AnnexureSheet):
            return data
        if not isinstance(data, Mapping):
            raise InvalidCollectionError('restSheets entry', data)
        name = data.get('sheetName', data.get('sheet_name')) or 'Sheet'
        headers = [h for h in (data.get('headers') or [])]
        rows = [r for r in (data.get('rows') or []) if isinstance(r, Mapping)]
        return cls(sheet_name=str(name), headers=headers, rows=rows)

    @property
    def effective_headers(self):
        if self.headers:
            return list(self.headers)
        return list(self.rows[0].keys()) if self.rows else []


@dataclass
class TaxTotals:
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    cess: float = 0.0

    @property
    def total(self):
        return self.igst + self.cgst + self.sgst + self.cess

    def __add__(self, other):
        return TaxTotals(self.igst + other.igst, self.cgst + other.cgst,
                         self.sgst + other.sgst, self.cess + other.cess)

    def __sub__(self, other):
        return TaxTotals(self.igst - other.igst, self.cgst - other.cgst,
                         self.sgst - other.sgst, self.cess - other.cess)

    def as_list(self):
        return [self.igst, self.cgst, self.sgst, self.cess, self.total]


@dataclass
class CategoryTotals:
    gstr2b_invoice: float = 0.0
    gstr2b_taxable: float = 0.0
    igst: float = 0.0
    cgst: float = 0.0
    sgst: float = 0.0
    cess: float = 0.0
    supplier_amount: float = 0.0
    invoice_amount: float = 0.0

    def __add__(self, other):
        return CategoryTotals(**{f.name: getattr(self, f.name) + getattr(other, f.name)
                                 for f in fields(self)})

    @property
    def taxes(self):
        return TaxTotals(self.igst, self.cgst, self.sgst, self.cess)

    def as_list(self):
        return [getattr(self, f.name) for f in fields(self)]


@dataclass
class ActionTotals:
    accept: float = 0.0
    reject: float = 0.0
    pending: float = 0.0
    none: float = 0.0

    @property
    def grand_total(self):
        return self.accept + self.reject + self.pending + self.none

    def get(self, decision):
        return getattr(self, decision.value)


@dataclass
class LedgerLine:
    side: str          # 'ADD' / 'LESS'
    name: str
    taxes: TaxTotals


@dataclass
class ReconLedger:
    add_lines: List[LedgerLine]
    less_lines: List[LedgerLine]
    rcm_payable: float
    rcm_taxes: TaxTotals

    @property
    def add_total(self):
        return sum((l.taxes for l in self.add_lines), TaxTotals())

    @property
    def less_total(self):
        return sum((l.taxes for l in self.less_lines), TaxTotals())

    @property
    def grand_total(self):
        return self.add_total - self.less_total


@dataclass
class ClassifiedRows:
    buckets: Dict[Bucket, List[InvoiceRow]] = field(
        default_factory=lambda: {b: [] for b in BUCKET_ORDER})

    def rows(self, bucket):
        return self.buckets[bucket]

    def all_rows(self):
        out = []
        for b in BUCKET_ORDER:
            out.extend(self.buckets[b])
        return out

    def counts(self):
        return {b.value: len(self.buckets[b]) for b in BUCKET_ORDER}


@dataclass
class ReconResult:
    classified: ClassifiedRows
    bucket_totals: Dict[Bucket, CategoryTotals]
    grand_total: CategoryTotals
    action_totals: ActionTotals
    ledger: ReconLedger
    processed_rows: List[InvoiceRow] = field(default_factory=list)
    mismatched_rows: List[InvoiceRow] = field(default_factory=list)
    reverse_charge_rows: List[InvoiceRow] = field(default_factory=list)
    disallow_rows: List[InvoiceRow] = field(default_factory=list)
    rest_sheets: List[AnnexureSheet] = field(default_factory=list)
