from .action_json import (build_action_json_payload, default_row_groups,
                          dumps_action_json)
from .core_engine import run_tally_reconciliation
from .exceptions import InvalidCollectionError, ReconEngineError
from .models import ActionDecision, AnnexureSheet, Bucket, InvoiceRow
from .report_gen import generate_combined_workbook
from .row_signature import RowSignature, SignatureIndex, build_row_signature

__version__ = '1.0.0'
