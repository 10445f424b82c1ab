"""Tests for ExtractionSession and multi-volume runs.

WHY: The session is where carving meets the filesystem. These tests run
whole synthetic containers and check the resulting tree, the records, and
the behaviour around missing volumes, cancellation and parallel runs.

HOW: Containers come from conftest; output goes to pytest's tmp_path.

RULES:
- Every test writes only below tmp_path
"""

import threading
import time
from unittest.mock import patch

import pytest

from bigfile_audio.core.errors import InputUnavailable
from bigfile_audio.core.ir import Outcome
from bigfile_audio.extractors.banks import BankExtractor
from bigfile_audio.session import ExtractionSession, discover_volumes, read_volume, run_volumes

TEN_BYTES = b"0123456789"


class TestExtractionSession:

    def test_full_container(self, tmp_path, sample_container):
        session = ExtractionSession(output=tmp_path, languages=["eng"])
        report = session.parse_buffer(sample_container, "BigFile_PC.dat")

        assert (tmp_path / "banks" / "Music_Main.bnk").read_bytes()[:4] == b"BKHD"
        wem = tmp_path / "wem" / "dialogue" / "ENGLISH" / "PATHA" / "PATHB" / "FILE.wem"
        assert wem.read_bytes() == b"RIFF" + b"\x10" * 30
        assert (tmp_path / "midi" / "Battle Theme.mid").read_bytes()[:4] == b"MThd"
        assert not (tmp_path / "wem" / "dialogue" / "FRENCH").exists()

        counts = report.counts()
        assert counts["banks"] == {"extracted": 1}
        assert counts["dialogue"] == {"extracted": 1, "skipped": 1}
        assert counts["midi"] == {"extracted": 1}
        assert report.ok

    def test_records_carry_path_and_volume(self, tmp_path, sample_container):
        report = ExtractionSession(output=tmp_path, languages=["ENG"]).parse_buffer(
            sample_container, "vol"
        )
        for record in report.extracted:
            assert record.volume == "vol"
            assert record.path is not None and record.path.is_file()
            assert record.asset is None

    def test_flatten_mode(self, tmp_path, sample_container):
        ExtractionSession(output=tmp_path, languages=["ENG"], flatten=True).parse_buffer(
            sample_container
        )
        assert (tmp_path / "wem" / "dialogue" / "ENGLISH" / "PATHA_PATHB_FILE.wem").is_file()

    def test_no_languages_skips_dialogue(self, tmp_path, sample_container):
        report = ExtractionSession(output=tmp_path).parse_buffer(sample_container)
        assert "dialogue" not in report.counts()
        assert not (tmp_path / "wem").exists()

    def test_kind_selection(self, tmp_path, sample_container):
        report = ExtractionSession(output=tmp_path, kinds=["midi"]).parse_buffer(sample_container)
        assert set(report.counts()) == {"midi"}
        assert not (tmp_path / "banks").exists()

    def test_unknown_kind_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="textures"):
            ExtractionSession(output=tmp_path, kinds=["textures"])

    def test_on_record_sees_every_record(self, tmp_path, sample_container):
        seen = []
        report = ExtractionSession(
            output=tmp_path, languages=["ENG"], on_record=seen.append,
        ).parse_buffer(sample_container)
        assert seen == report.records
        assert len(seen) == 4

    def test_cancel_before_start(self, tmp_path, sample_container):
        event = threading.Event()
        event.set()
        report = ExtractionSession(output=tmp_path, cancel_event=event).parse_buffer(sample_container)
        assert report.cancelled is True
        assert report.records == []
        assert not report.ok

    def test_cancel_mid_scan_keeps_partial_results(self, tmp_path, builder):
        buffer = builder.bank(b"BKHD" + TEN_BYTES).bank(b"BKHD" + TEN_BYTES).build()
        event = threading.Event()

        def _stop_after_first(record):
            event.set()

        report = ExtractionSession(
            output=tmp_path, cancel_event=event, on_record=_stop_after_first,
        ).parse_buffer(buffer)
        assert report.cancelled is True
        assert len(report.records) == 1
        assert (tmp_path / "banks" / "UNK_BANK_0.bnk").is_file()

    def test_duplicate_names_do_not_overwrite(self, tmp_path, builder):
        buffer = (
            builder.bank_name("Dup")
            .bank_name("Dup")
            .bank(b"BKHD" + b"A" * 10)
            .bank(b"BKHD" + b"B" * 10)
            .build()
        )
        ExtractionSession(output=tmp_path).parse_buffer(buffer)
        assert (tmp_path / "banks" / "Dup.bnk").read_bytes() == b"BKHD" + b"A" * 10
        assert (tmp_path / "banks" / "Dup-2.bnk").read_bytes() == b"BKHD" + b"B" * 10

    def test_write_failure_becomes_failed_record(self, tmp_path, builder):
        buffer = builder.bank(b"BKHD" + TEN_BYTES).build()
        # A directory where the bank file should go makes the write fail.
        (tmp_path / "banks" / "UNK_BANK_0.bnk").mkdir(parents=True)
        report = ExtractionSession(output=tmp_path, kinds=["banks"]).parse_buffer(buffer)
        assert report.records[0].outcome is Outcome.FAILED
        assert report.records[0].reason.startswith("write failed")

    def test_memoryview_is_read_as_bytes(self, tmp_path, sample_container):
        seen = []

        class RecordingExtractor(BankExtractor):
            def extract(self, buffer, context):
                seen.append(type(buffer))
                return super().extract(buffer, context)

        with patch.dict("bigfile_audio.session.EXTRACTORS", {"banks": RecordingExtractor}):
            session = ExtractionSession(output=tmp_path, kinds=["banks"])
            report = session.parse_buffer(memoryview(sample_container), "vol")

        assert seen == [bytes]
        assert report.counts()["banks"] == {"extracted": 1}


class TestVolumes:

    def test_read_missing_volume(self, tmp_path):
        with pytest.raises(InputUnavailable) as exc_info:
            read_volume(tmp_path / "missing.dat")
        assert exc_info.value.path == tmp_path / "missing.dat"

    def test_parse_missing_volume_reports_error(self, tmp_path):
        report = ExtractionSession(output=tmp_path / "out").parse(tmp_path / "missing.dat")
        assert report.error is not None
        assert "missing.dat" in report.error
        assert report.records == []

    def test_discover_volumes_in_folder(self, tmp_path):
        for name in ("BigFile_PC.dat", "BigFile_PC.d01", "readme.txt"):
            (tmp_path / name).write_bytes(b"")
        assert [p.name for p in discover_volumes(tmp_path)] == ["BigFile_PC.d01", "BigFile_PC.dat"]

    def test_discover_volumes_passes_files_through(self, tmp_path):
        volume = tmp_path / "custom.bin"
        assert discover_volumes(volume) == [volume]


class TestRunVolumes:

    def _write_volumes(self, directory, builder_cls):
        paths = []
        for name in ("BigFile_PC.dat", "BigFile_PC.d01"):
            path = directory / name
            path.write_bytes(builder_cls().bank(b"BKHD" + TEN_BYTES).build())
            paths.append(path)
        return paths

    @pytest.mark.parametrize("jobs", [1, 2])
    def test_fallback_names_are_namespaced_per_volume(self, tmp_path, builder, jobs):
        paths = self._write_volumes(tmp_path, type(builder))
        out = tmp_path / "out"
        reports = run_volumes(paths, output=out, jobs=jobs)

        assert [r.volume for r in reports] == ["BigFile_PC.dat", "BigFile_PC.d01"]
        assert (out / "banks" / "BigFile_PC.dat_UNK_BANK_0.bnk").is_file()
        assert (out / "banks" / "BigFile_PC.d01_UNK_BANK_0.bnk").is_file()

    def test_single_volume_is_not_prefixed(self, tmp_path, builder):
        path = tmp_path / "BigFile_PC.dat"
        path.write_bytes(builder.bank(b"BKHD" + TEN_BYTES).build())
        run_volumes([path], output=tmp_path / "out")
        assert (tmp_path / "out" / "banks" / "UNK_BANK_0.bnk").is_file()

    def test_missing_volume_does_not_stop_others(self, tmp_path, builder):
        good = tmp_path / "BigFile_PC.dat"
        good.write_bytes(builder.bank(b"BKHD" + TEN_BYTES).build())
        reports = run_volumes([tmp_path / "gone.d01", good], output=tmp_path / "out", jobs=2)
        assert reports[0].error is not None
        assert reports[1].error is None
        assert len(reports[1].extracted) == 1

    def test_interrupt_cancels_other_running_volumes(self, tmp_path, builder):
        fast = tmp_path / "BigFile_PC.dat"
        fast.write_bytes(type(builder)().bank(b"BKHD" + TEN_BYTES).build())
        slow_builder = type(builder)()
        for _ in range(20):
            slow_builder.bank(b"BKHD" + TEN_BYTES)
        slow = tmp_path / "BigFile_PC.d01"
        slow.write_bytes(slow_builder.build())
        slow_records = []

        def on_record(record):
            if record.volume == fast.name:
                raise KeyboardInterrupt
            slow_records.append(record)
            time.sleep(0.05)

        cancel_event = threading.Event()
        with pytest.raises(KeyboardInterrupt):
            run_volumes(
                [slow, fast], output=tmp_path / "out", jobs=2,
                cancel_event=cancel_event, on_record=on_record,
            )
        assert cancel_event.is_set()
        assert len(slow_records) < 20
