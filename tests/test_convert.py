"""Tests for the WEM → OGG converter wrapper.

HOW: subprocess.run is patched; no external tool is ever executed.
"""

from unittest.mock import MagicMock, patch

import pytest

from bigfile_audio.convert import convert_tree, convert_wem_to_ogg
from bigfile_audio.core.errors import ConversionError


def _ok():
    return MagicMock(returncode=0, stdout="", stderr="")


class TestConvertWemToOgg:

    @patch("bigfile_audio.convert.subprocess.run")
    def test_runs_ww2ogg_then_revorb(self, mock_run, tmp_path):
        mock_run.return_value = _ok()
        wem = tmp_path / "1.wem"
        ogg = tmp_path / "ogg" / "1.ogg"

        result = convert_wem_to_ogg(wem, ogg, ww2ogg="ww2ogg", revorb="revorb", codebooks="")

        assert result == ogg
        assert ogg.parent.is_dir()
        commands = [c.args[0] for c in mock_run.call_args_list]
        assert commands == [
            ["ww2ogg", str(wem), "-o", str(ogg)],
            ["revorb", str(ogg), str(ogg)],
        ]

    @patch("bigfile_audio.convert.subprocess.run")
    def test_codebooks_option(self, mock_run, tmp_path):
        mock_run.return_value = _ok()
        convert_wem_to_ogg(
            tmp_path / "1.wem", tmp_path / "1.ogg",
            ww2ogg="ww2ogg", revorb="revorb", codebooks="packed.bin",
        )
        assert mock_run.call_args_list[0].args[0][-2:] == ["--pcb", "packed.bin"]

    @patch("bigfile_audio.convert.subprocess.run", side_effect=FileNotFoundError)
    def test_missing_tool(self, mock_run, tmp_path):
        with pytest.raises(ConversionError, match="converter not found"):
            convert_wem_to_ogg(tmp_path / "1.wem", tmp_path / "1.ogg", ww2ogg="nope", revorb="revorb")

    @patch("bigfile_audio.convert.subprocess.run")
    def test_non_zero_exit(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="bad header")
        with pytest.raises(ConversionError, match="bad header"):
            convert_wem_to_ogg(tmp_path / "1.wem", tmp_path / "1.ogg", ww2ogg="ww2ogg", revorb="revorb")


class TestConvertTree:

    @patch("bigfile_audio.convert.subprocess.run")
    def test_mirrors_layout_and_collects_failures(self, mock_run, tmp_path):
        wem_root = tmp_path / "wem"
        (wem_root / "Bank").mkdir(parents=True)
        (wem_root / "Bank" / "1.wem").write_bytes(b"RIFF")
        (wem_root / "Bank" / "2.wem").write_bytes(b"RIFF")

        def _fake_run(command, **kwargs):
            if "2.wem" in command[1]:
                return MagicMock(returncode=1, stdout="", stderr="broken")
            return _ok()

        mock_run.side_effect = _fake_run
        converted, failures = convert_tree(wem_root, tmp_path / "ogg", ww2ogg="ww2ogg", revorb="revorb")

        assert converted == [tmp_path / "ogg" / "Bank" / "1.ogg"]
        assert [f[0].name for f in failures] == ["2.wem"]
        assert "broken" in failures[0][1]

    def test_empty_tree(self, tmp_path):
        assert convert_tree(tmp_path / "missing", tmp_path / "ogg") == ([], [])
