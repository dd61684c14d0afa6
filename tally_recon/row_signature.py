# tally_recon/row_signature.py
# Composite identity key per row, used to match the same invoice across the
# Processed / Mismatched / RCM / Disallow collections.

from typing import NamedTuple

from .constants import DISALLOW_MARKER
from .data_utils import (is_disallow_ledger, is_null, normalize_accept_credit,
                         normalize_itc_availability)
from .models import InvoiceRow

SIGNATURE_DELIMITER = '::'


def _sig_part(val):
    """
    Stringify one key part.
    Null → ''. Integral numbers lose their '.0': 1500 and 1500.0 give the
    same part.
    """
    if is_null(val):
        return ''
    if isinstance(val, bool):
        return str(val)
    if isinstance(val, (int, float)) or hasattr(val, 'is_integer'):
        try:
            f_val = float(val)
            if f_val.is_integer():
                return str(int(f_val))
            return repr(f_val)
        except (TypeError, ValueError, OverflowError):
            pass
    return str(val).strip()


class RowSignature(NamedTuple):
    reference_no: str
    supplier_name: str
    gstin: str
    invoice_number: str
    amount: str

    @property
    def key(self):
        return SIGNATURE_DELIMITER.join(self)

    def __str__(self):
        return self.key


def build_row_signature(row):
    row = InvoiceRow(row)
    return RowSignature(
        reference_no=_sig_part(row.field('reference_no')),
        supplier_name=_sig_part(row.field('supplier_name')),
        gstin=_sig_part(row.field('gstin')),
        invoice_number=_sig_part(row.field('invoice_number')),
        amount=_sig_part(row.field('supplier_amount')),
    )


def signature_set(rows):
    return {build_row_signature(r) for r in rows}


def is_disallow_flagged(row, marker=DISALLOW_MARKER):
    """Marker in the ledger name, or ITC explicitly not available."""
    row = InvoiceRow(row)
    if is_disallow_ledger(row.ledger_name, marker):
        return True
    return normalize_itc_availability(row.itc_availability) == 'No'


class SignatureIndex:
    """
    Membership sets for one engine run.

    Built once from the four collections; the classifier only ever asks it
    questions, it never walks the collections itself.
    """

    def __init__(self, processed, mismatched, reverse_charge, disallow,
                 marker=DISALLOW_MARKER):
        self.processed = signature_set(processed)
        self.mismatched = signature_set(mismatched)
        self.reverse_charge = signature_set(reverse_charge)
        self.disallow = signature_set(disallow)

        # Mismatched accept-credit decision per signature; unset counts as 'No'
        self.accept_credit = {}
        for r in mismatched:
            sig = build_row_signature(r)
            self.accept_credit[sig] = normalize_accept_credit(InvoiceRow(r).accept_credit) or 'No'

        # Any edited copy of a row carrying the marker / ITC 'No' disallows it
        self.flagged = set()
        for collection in (disallow, reverse_charge, mismatched, processed):
            for r in collection:
                if is_disallow_flagged(r, marker):
                    self.flagged.add(build_row_signature(r))

    @classmethod
    def from_collections(cls, processed=(), mismatched=(), reverse_charge=(),
                         disallow=(), marker=DISALLOW_MARKER):
        return cls(list(processed), list(mismatched), list(reverse_charge),
                   list(disallow), marker=marker)

    def is_disallowed(self, sig):
        return sig in self.disallow or sig in self.flagged

    def credit_accepted(self, sig):
        return self.accept_credit.get(sig) == 'Yes'
