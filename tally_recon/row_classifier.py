# tally_recon/row_classifier.py
# Places every input row into exactly one bucket. A signature found in several
# collections is owned by the first one in claim order; copies elsewhere are skipped.
#
# Priority (highest first):
#   1. Disallowed          – in Disallow, or any copy marked [disallow] / ITC 'No'
#   2. Reverse Charge      – in RCM
#   3. Allowed             – Mismatched with Accept Credit 'Yes', or plain Processed
#   4. Mismatched Rejected – Mismatched with Accept Credit 'No' / unset

import logging
from collections.abc import Mapping

import pandas as pd

from .exceptions import InvalidCollectionError
from .models import Bucket, ClassifiedRows, InvoiceRow
from .row_signature import SignatureIndex, build_row_signature

logger = logging.getLogger(__name__)

ORIGIN_PROCESSED      = 'processed'
ORIGIN_MISMATCHED     = 'mismatched'
ORIGIN_REVERSE_CHARGE = 'reverse_charge'
ORIGIN_DISALLOW       = 'disallow'

# Collection walk order = signature ownership order
CLAIM_ORDER = [ORIGIN_DISALLOW, ORIGIN_REVERSE_CHARGE, ORIGIN_MISMATCHED, ORIGIN_PROCESSED]


def as_rows(name, collection):
    """Validate one input collection → list of InvoiceRow."""
    if collection is None:
        return []
    if isinstance(collection, pd.DataFrame):
        collection = collection.to_dict('records')
    if isinstance(collection, (str, bytes, Mapping)) or not isinstance(collection, (list, tuple)):
        raise InvalidCollectionError(name, collection)
    rows = []
    for r in collection:
        if not isinstance(r, (Mapping, InvoiceRow)):
            raise InvalidCollectionError(name, r)
        rows.append(InvoiceRow(r))
    return rows


def classify_row(row, origin, index):
    """
    Bucket for one row. Never returns None.
    The row's own collection counts even when the index was built without it.
    """
    sig = build_row_signature(row)

    if origin == ORIGIN_DISALLOW or index.is_disallowed(sig):
        return Bucket.DISALLOWED
    if origin == ORIGIN_REVERSE_CHARGE or sig in index.reverse_charge:
        return Bucket.REVERSE_CHARGE
    if origin == ORIGIN_MISMATCHED or sig in index.mismatched:
        if index.credit_accepted(sig):
            return Bucket.ALLOWED
        return Bucket.MISMATCHED_REJECTED
    return Bucket.ALLOWED


def classify_rows(processed=None, mismatched=None, reverse_charge=None, disallow=None,
                  index=None):
    collections = {
        ORIGIN_PROCESSED     : as_rows('processedRows', processed),
        ORIGIN_MISMATCHED    : as_rows('mismatchedRows', mismatched),
        ORIGIN_REVERSE_CHARGE: as_rows('reverseChargeRows', reverse_charge),
        ORIGIN_DISALLOW      : as_rows('disallowRows', disallow),
    }
    if index is None:
        index = SignatureIndex.from_collections(
            processed=collections[ORIGIN_PROCESSED],
            mismatched=collections[ORIGIN_MISMATCHED],
            reverse_charge=collections[ORIGIN_REVERSE_CHARGE],
            disallow=collections[ORIGIN_DISALLOW],
        )

    # Owner of a signature = first collection in claim order holding it.
    # Every owner row is placed; copies in later collections are skipped.
    owner = {}
    for origin in CLAIM_ORDER:
        for row in collections[origin]:
            owner.setdefault(build_row_signature(row), origin)

    result = ClassifiedRows()
    skipped = 0
    for origin in CLAIM_ORDER:
        for row in collections[origin]:
            if owner[build_row_signature(row)] != origin:
                skipped += 1
                continue
            result.buckets[classify_row(row, origin, index)].append(row)

    logger.debug("Classified %d signatures (%d copies in later collections skipped): %s",
                 len(owner), skipped, result.counts())
    return result
