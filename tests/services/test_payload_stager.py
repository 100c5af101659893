"""Tests for staging base64 frames into scratch files."""

import base64
from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[2]))

from clauveo.services.payload_stager import FrameDecodeError, PayloadStager, ScratchDirError


JPEG_HEADER = b"\xff\xd8\xff\xe0fake-jpeg"


def _encode(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def test_invalid_frame_is_skipped_and_numbering_keeps_input_positions(tmp_path: Path) -> None:
    """The second blob fails, so only frame_1 and frame_3 are written."""

    scratch = tmp_path / "request"
    frames = [_encode(b"first"), "not base64 at all!!", _encode(b"third")]

    staged = PayloadStager().stage(frames, scratch)

    assert staged == [scratch / "frame_1.jpg", scratch / "frame_3.jpg"]
    assert (scratch / "frame_1.jpg").read_bytes() == b"first"
    assert (scratch / "frame_3.jpg").read_bytes() == b"third"
    assert not (scratch / "frame_2.jpg").exists()


def test_data_url_prefix_is_stripped(tmp_path: Path) -> None:
    """Everything up to the first comma is treated as the data-URL header."""

    blob = "data:image/jpeg;base64," + _encode(JPEG_HEADER)
    staged = PayloadStager().stage([blob], tmp_path / "scratch")
    assert staged[0].read_bytes() == JPEG_HEADER


def test_empty_input_creates_directory_and_returns_nothing(tmp_path: Path) -> None:
    """An empty result is not an error and the directory still exists."""

    scratch = tmp_path / "nested" / "scratch"
    assert PayloadStager().stage([], scratch) == []
    assert scratch.is_dir()


def test_unwritable_frame_is_skipped(tmp_path: Path) -> None:
    """A write failure on one frame does not abort the others."""

    scratch = tmp_path / "scratch"
    scratch.mkdir()
    (scratch / "frame_1.jpg").mkdir()

    staged = PayloadStager().stage([_encode(b"one"), _encode(b"two")], scratch)
    assert staged == [scratch / "frame_2.jpg"]


def test_scratch_directory_creation_failure_is_fatal(tmp_path: Path) -> None:
    """When the scratch folder cannot be created the whole staging fails."""

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(ScratchDirError):
        PayloadStager().stage([_encode(b"one")], blocker / "scratch")


@pytest.mark.parametrize("blob", ["abc", "data:image/png;base64,@@@@", None])
def test_decode_frame_rejects_invalid_payloads(blob) -> None:
    with pytest.raises(FrameDecodeError):
        PayloadStager.decode_frame(blob)
