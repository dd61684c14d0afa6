"""
Tests for the tally-recon command line.
"""

import json

import pytest

from tally_recon.cli import build_parser, load_bundle, main, run
from tally_recon.exceptions import ReconEngineError


@pytest.fixture
def bundle(processed_rows, mismatched_rows, reverse_charge_rows, original_rows, eco_sheet):
    return {
        'originalRows': original_rows,
        'processedRows': processed_rows,
        'mismatchedRows': mismatched_rows,
        'reverseChargeRows': reverse_charge_rows,
        'disallowRows': [],
        'restSheets': [eco_sheet],
        'companyGstin': '27AAACZ9999Z1Z9',
    }


@pytest.fixture
def bundle_path(tmp_path, bundle):
    path = tmp_path / 'bundle.json'
    path.write_text(json.dumps(bundle), encoding='utf-8')
    return path


class TestMain:

    def test_writes_both_outputs(self, tmp_path, bundle_path):
        xlsx, out = tmp_path / 'export.xlsx', tmp_path / 'actions.json'
        code = main([str(bundle_path), '--out-xlsx', str(xlsx), '--out-json', str(out)])
        assert code == 0
        assert xlsx.read_bytes()[:2] == b'PK'
        payload = json.loads(out.read_text(encoding='utf-8'))
        assert payload['rtin'] == '27AAACZ9999Z1Z9'
        assert len(payload['invdata']['b2b']) == 4

    def test_gstin_flag_overrides_bundle(self, tmp_path, bundle_path):
        out = tmp_path / 'actions.json'
        assert main([str(bundle_path), '--out-json', str(out), '--gstin', '29aaacx0000x1z0']) == 0
        assert json.loads(out.read_text(encoding='utf-8'))['rtin'] == '29AAACX0000X1Z0'

    def test_nothing_to_do(self, bundle_path):
        assert main([str(bundle_path)]) == 2

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / 'missing.json'), '--out-xlsx', str(tmp_path / 'x.xlsx')]) == 1

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'broken.json'
        path.write_text('{"processedRows": [', encoding='utf-8')
        assert main([str(path), '--out-xlsx', str(tmp_path / 'x.xlsx')]) == 1

    def test_bad_collection_shape(self, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps({'processedRows': 'nope'}), encoding='utf-8')
        assert main([str(path), '--out-xlsx', str(tmp_path / 'x.xlsx')]) == 1
        assert not (tmp_path / 'x.xlsx').exists()


class TestHelpers:

    def test_load_bundle_rejects_non_object(self, tmp_path):
        path = tmp_path / 'list.json'
        path.write_text('[]', encoding='utf-8')
        with pytest.raises(ReconEngineError):
            load_bundle(path)

    def test_run_without_outputs_still_reconciles(self, bundle):
        result, payload = run(bundle)
        assert payload is None
        assert result.action_totals.grand_total == pytest.approx(73600)

    def test_parser_defaults(self):
        args = build_parser().parse_args(['b.json'])
        assert (args.out_xlsx, args.out_json, args.gstin, args.verbose) == (None, None, None, False)
