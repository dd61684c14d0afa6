# tally_recon/core_engine.py
# One reconciliation run over the four edited row collections + annexures.
# Pure: nothing is kept between calls, caller rows are never modified.

import logging

from .exceptions import InvalidCollectionError
from .models import AnnexureSheet, ReconResult
from .reco_ledger import build_reco_ledger
from .row_classifier import as_rows, classify_rows
from .row_signature import SignatureIndex
from .tax_aggregator import (calculate_action_totals, calculate_bucket_totals,
                             grand_total)

logger = logging.getLogger(__name__)


def _as_sheets(rest_sheets):
    if rest_sheets is None:
        return []
    if not isinstance(rest_sheets, (list, tuple)):
        raise InvalidCollectionError('restSheets', rest_sheets)
    return [AnnexureSheet.from_dict(s) for s in rest_sheets]


def run_tally_reconciliation(processed_rows, mismatched_rows, reverse_charge_rows,
                             disallow_rows, rest_sheets=None):
    processed      = as_rows('processedRows', processed_rows)
    mismatched     = as_rows('mismatchedRows', mismatched_rows)
    reverse_charge = as_rows('reverseChargeRows', reverse_charge_rows)
    disallow       = as_rows('disallowRows', disallow_rows)
    sheets         = _as_sheets(rest_sheets)

    logger.info("Reconciling %d processed, %d mismatched, %d RCM, %d disallow rows, %d annexures",
                len(processed), len(mismatched), len(reverse_charge), len(disallow), len(sheets))

    # Step 1: Signature index
    index = SignatureIndex.from_collections(
        processed=processed, mismatched=mismatched,
        reverse_charge=reverse_charge, disallow=disallow,
    )

    # Step 2: Bucket every distinct signature
    classified = classify_rows(processed, mismatched, reverse_charge, disallow, index=index)

    # Step 3: Bucket / grand / action totals
    bucket_totals = calculate_bucket_totals(classified)
    grand = grand_total(bucket_totals)
    action_totals = calculate_action_totals(classified.all_rows())

    # Step 4: ADD / LESS ledger (annexure totals computed inside)
    ledger = build_reco_ledger(bucket_totals, sheets)

    logger.info("Buckets %s | net ITC %.2f | RCM payable %.2f",
                classified.counts(), ledger.grand_total.total, ledger.rcm_payable)

    return ReconResult(
        classified=classified,
        bucket_totals=bucket_totals,
        grand_total=grand,
        action_totals=action_totals,
        ledger=ledger,
        processed_rows=processed,
        mismatched_rows=mismatched,
        reverse_charge_rows=reverse_charge,
        disallow_rows=disallow,
        rest_sheets=sheets,
    )
