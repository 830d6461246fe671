"""Unit tests for TranscriptManager."""

import re
import threading
from datetime import datetime
from pathlib import Path

import pytest

from meetscribe.models.transcription import TranscriptEntry
from meetscribe.storage.transcript_manager import (
    TranscriptManager,
    TRANSCRIPT_HEADER,
    format_timestamp,
    generate_timestamped_filename,
)


@pytest.mark.unit
class TestTranscriptManager:

    def test_initialize_writes_header(self, transcript_path):
        manager = TranscriptManager(transcript_path)

        manager.initialize()

        assert Path(transcript_path).read_text(encoding='utf-8') == "# Meeting Transcript\n\n"

    def test_initialize_creates_parent_directories(self, temp_data_dir):
        path = Path(temp_data_dir) / "nested" / "dir" / "transcript.md"
        manager = TranscriptManager(str(path))

        manager.initialize()

        assert path.exists()

    def test_initialize_keeps_existing_content(self, transcript_path):
        Path(transcript_path).write_text("existing\n", encoding='utf-8')
        manager = TranscriptManager(transcript_path)

        manager.initialize()

        assert manager.get_content() == "existing\n"

    def test_append_entry_format(self, transcript_path):
        manager = TranscriptManager(transcript_path)
        manager.initialize()

        manager.append(TranscriptEntry(timestamp="2025-10-04 12:00:08", text="Hello everyone"))

        assert manager.get_content() == TRANSCRIPT_HEADER + "\n**2025-10-04 12:00:08**  Hello everyone\n"

    def test_system_message_format(self, transcript_path):
        manager = TranscriptManager(transcript_path)
        manager.initialize()

        manager.append_system_message("▶️ TRANSCRIPTION AUTO-RESUMED: Audio detected again.")

        content = manager.get_content()
        assert re.search(
            r"\n---\n\*\*\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\*\* _\[SYSTEM\]_ "
            r"▶️ TRANSCRIPTION AUTO-RESUMED: Audio detected again\.\n---\n$",
            content,
        )

    def test_system_message_uses_given_moment(self, transcript_path):
        manager = TranscriptManager(transcript_path)
        manager.initialize()

        manager.append_system_message("⏸️ TRANSCRIPTION PAUSED", datetime(2025, 10, 4, 9, 5, 7))

        assert manager.get_content().endswith("\n---\n**2025-10-04 09:05:07** _[SYSTEM]_ ⏸️ TRANSCRIPTION PAUSED\n---\n")

    def test_get_content_of_missing_file(self, transcript_path):
        assert TranscriptManager(transcript_path).get_content() == ""

    def test_clear_resets_to_header(self, transcript_path):
        manager = TranscriptManager(transcript_path)
        manager.initialize()
        manager.append(TranscriptEntry(timestamp="2025-10-04 12:00:08", text="Hello"))

        manager.clear()

        assert manager.get_content() == TRANSCRIPT_HEADER

    def test_delete(self, transcript_path):
        manager = TranscriptManager(transcript_path)
        manager.initialize()

        assert manager.delete() is True
        assert not Path(transcript_path).exists()
        assert manager.delete() is False

    def test_concurrent_appends_are_not_interleaved(self, transcript_path):
        manager = TranscriptManager(transcript_path)
        manager.initialize()

        def writer(n):
            for i in range(20):
                manager.append(TranscriptEntry(timestamp="2025-10-04 12:00:00", text=f"w{n}-{i}"))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        lines = [line for line in manager.get_content().split("\n") if line.startswith("**")]
        assert len(lines) == 80
        assert all(re.fullmatch(r"\*\*2025-10-04 12:00:00\*\*  w\d-\d+", line) for line in lines)

    def test_get_file_path(self, transcript_path):
        assert TranscriptManager(transcript_path).get_file_path() == transcript_path


@pytest.mark.unit
def test_format_timestamp():
    assert format_timestamp(datetime(2025, 10, 4, 9, 5, 7)) == "2025-10-04 09:05:07"


@pytest.mark.unit
def test_generate_timestamped_filename():
    moment = datetime(2025, 10, 4, 14, 30, 22, 123456)

    assert generate_timestamped_filename(moment) == "transcript_2025-10-04_14-30-22-123.md"
    assert re.fullmatch(r"transcript_\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}-\d{3}\.md",
                        generate_timestamped_filename())
