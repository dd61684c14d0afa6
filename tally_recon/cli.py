# tally_recon/cli.py
# tally-recon BUNDLE.json --out-xlsx export.xlsx --out-json actions.json
#
# BUNDLE.json keys: originalRows, processedRows, processedHeaders,
# mismatchedRows, reverseChargeRows, disallowRows, restSheets, companyGstin

import argparse
import json
import logging
import sys
from pathlib import Path

from .action_json import (build_action_json_payload, default_row_groups,
                          dumps_action_json, feed_totals)
from .core_engine import run_tally_reconciliation
from .exceptions import ReconEngineError
from .report_gen import generate_combined_workbook

logger = logging.getLogger(__name__)


def load_bundle(path):
    with open(path, encoding='utf-8') as fh:
        bundle = json.load(fh)
    if not isinstance(bundle, dict):
        raise ReconEngineError(f"{path}: expected a JSON object at the top level")
    return bundle


def run(bundle, out_xlsx=None, out_json=None, gstin=None):
    result = run_tally_reconciliation(
        bundle.get('processedRows'),
        bundle.get('mismatchedRows'),
        bundle.get('reverseChargeRows'),
        bundle.get('disallowRows'),
        bundle.get('restSheets'),
    )

    if out_xlsx:
        data = generate_combined_workbook(result, bundle.get('originalRows'),
                                          bundle.get('processedHeaders'))
        Path(out_xlsx).write_bytes(data)
        logger.info("Workbook written to %s", out_xlsx)

    payload = None
    if out_json:
        groups = default_row_groups(
            processed_rows=bundle.get('processedRows'),
            reverse_charge_rows=bundle.get('reverseChargeRows'),
            mismatched_rows=bundle.get('mismatchedRows'),
            disallow_rows=bundle.get('disallowRows'),
        )
        payload = build_action_json_payload(
            groups, bundle.get('originalRows'),
            company_gstin=gstin or bundle.get('companyGstin') or '',
        )
        if not payload['invdata']['b2b']:
            logger.warning("No rows with Accept/Reject/Pending actions to export")
        for code, (count, total) in sorted(feed_totals(payload).items()):
            logger.info("  action %s: %d invoice(s), value %.2f", code, count, total)
        Path(out_json).write_text(dumps_action_json(payload), encoding='utf-8')
        logger.info("Action JSON written to %s", out_json)

    return result, payload


def build_parser():
    ap = argparse.ArgumentParser(
        prog='tally-recon',
        description="Categorize GSTR-2B / Tally rows and build the export workbook and action JSON",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tally-recon bundle.json --out-xlsx export.xlsx
  tally-recon bundle.json --out-xlsx export.xlsx --out-json actions.json --gstin 27AAAAA0000A1Z5
        """
    )
    ap.add_argument('bundle', help="Path to the input JSON bundle")
    ap.add_argument('--out-xlsx', default=None, help="Write the export workbook here")
    ap.add_argument('--out-json', default=None, help="Write the portal action JSON here")
    ap.add_argument('--gstin', default=None, help="Company GSTIN (overrides companyGstin in the bundle)")
    ap.add_argument('-v', '--verbose', action='store_true', help="Enable debug logging")
    return ap


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    if not args.out_xlsx and not args.out_json:
        logger.error("Nothing to do: pass --out-xlsx and/or --out-json")
        return 2

    try:
        bundle = load_bundle(args.bundle)
        run(bundle, args.out_xlsx, args.out_json, args.gstin)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        return 1
    except json.JSONDecodeError as e:
        logger.error("Bundle is not valid JSON: %s", e)
        return 1
    except ReconEngineError as e:
        logger.error("Validation error: %s", e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
