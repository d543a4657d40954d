"""
Tests for the bulk synthesis command line script.
The synthesizer is mocked; only argument handling and exit codes are checked.
"""

import importlib.util
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from polyvox.shared.services.tts.bulk import BulkItemResult, BulkReport
from polyvox.shared.services.tts.models import Failure, FailureKind, ProviderCredentials, Success

SCRIPT = Path(__file__).resolve().parents[3] / "scripts" / "bulk_synthesize.py"


@pytest.fixture(scope="module")
def script():
    spec = importlib.util.spec_from_file_location("bulk_synthesize", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def lines_file(tmp_path):
    path = tmp_path / "lines.txt"
    path.write_text("Hello there\n\n  General Kenobi  \n", encoding="utf-8")
    return path


@pytest.fixture
def synthesizer(script):
    mock = Mock()
    mock.max_workers = 4
    with patch.object(script, "get_bulk_synthesizer", return_value=mock):
        yield mock


def _report(*results):
    items = [BulkItemResult(index=i, result=r, attempts=1) for i, r in enumerate(results)]
    return BulkReport(items=items, elapsed_seconds=0.5)


@pytest.mark.unit
class TestBulkSynthesizeScript:
    def test_read_lines_skips_blank(self, script, lines_file):
        assert script.read_lines(lines_file) == ["Hello there", "General Kenobi"]

    def test_success(self, script, synthesizer, lines_file, tmp_path):
        synthesizer.run.return_value = _report(Success(b"a"), Success(b"b"))
        with patch.object(script, "credentials_from_env", return_value=ProviderCredentials(ApiKey="k")):
            code = script.main(
                ["openai", str(lines_file), "--voice", "alloy", "--out", str(tmp_path), "--workers", "2"]
            )

        assert code == 0
        assert synthesizer.max_workers == 2
        descriptor, _, batch = synthesizer.run.call_args.args
        assert descriptor.name == "openai"
        assert [r.text for r in batch] == ["Hello there", "General Kenobi"]
        assert synthesizer.run.call_args.kwargs == {
            "output_dir": str(tmp_path),
            "file_prefix": "item",
        }

    def test_any_failure_exits_1(self, script, synthesizer, lines_file):
        synthesizer.run.return_value = _report(
            Success(b"a"), Failure(FailureKind.BAD_REQUEST, "nope", "openai")
        )
        with patch.object(script, "credentials_from_env", return_value=ProviderCredentials(ApiKey="k")):
            assert script.main(["openai", str(lines_file), "--voice", "alloy"]) == 1

    def test_unsaved_audio_exits_1(self, script, synthesizer, lines_file):
        report = _report(Success(b"a"), Success(b"b"))
        report.items[1].write_error = "No space left on device"
        synthesizer.run.return_value = report
        with patch.object(script, "credentials_from_env", return_value=ProviderCredentials(ApiKey="k")):
            assert script.main(["openai", str(lines_file), "--voice", "alloy"]) == 1

    def test_missing_credentials_exits_2(self, script, synthesizer, lines_file):
        with patch.object(script, "credentials_from_env", return_value=None):
            assert script.main(["openai", str(lines_file), "--voice", "alloy"]) == 2
        synthesizer.run.assert_not_called()

    def test_missing_input_exits_2(self, script, synthesizer, tmp_path):
        with patch.object(script, "credentials_from_env", return_value=ProviderCredentials(ApiKey="k")):
            code = script.main(["openai", str(tmp_path / "absent.txt"), "--voice", "alloy"])
        assert code == 2

    def test_unknown_provider_is_rejected_by_argparse(self, script):
        with pytest.raises(SystemExit):
            script.main(["nope", "lines.txt", "--voice", "x"])
