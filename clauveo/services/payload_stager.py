"""Decode base64 frames captured by the front-end into scratch files."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import List, Sequence


logger = logging.getLogger(__name__)


class PayloadStagerError(RuntimeError):
    """Raised when frames cannot be staged for an assistant request."""


class ScratchDirError(PayloadStagerError):
    """Raised when the scratch directory cannot be created."""


class FrameDecodeError(PayloadStagerError):
    """Raised when a single frame is not valid base64."""


FRAME_NAME_TEMPLATE = "frame_{number}.jpg"


class PayloadStager:
    """Write each frame blob as ``frame_<n>.jpg`` inside a scratch directory."""

    @staticmethod
    def decode_frame(blob: str) -> bytes:
        """Return the binary content of a raw or data-URL base64 blob."""

        if not isinstance(blob, str):
            raise FrameDecodeError(f"expected a string, got {type(blob).__name__}")
        payload = blob.split(",", 1)[1] if "," in blob else blob
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise FrameDecodeError(str(exc)) from exc

    def stage(self, frames: Sequence[str], scratch_dir: Path) -> List[Path]:
        """Stage the frames and return the paths that were written.

        A frame that cannot be decoded or written is logged and skipped, so
        the result can be shorter than ``frames`` or empty.
        """

        try:
            scratch_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Could not create scratch directory %s: %s", scratch_dir, exc)
            raise ScratchDirError(f"Failed to create temp directory '{scratch_dir}': {exc}") from exc

        staged: List[Path] = []
        for index, blob in enumerate(frames):
            target = scratch_dir / FRAME_NAME_TEMPLATE.format(number=index + 1)
            try:
                content = self.decode_frame(blob)
            except FrameDecodeError as exc:
                logger.warning("Skipping frame %d: invalid base64 payload (%s)", index + 1, exc)
                continue
            try:
                target.write_bytes(content)
            except OSError as exc:
                logger.warning("Skipping frame %d: could not write %s (%s)", index + 1, target, exc)
                continue
            staged.append(target)

        logger.debug("Staged %d of %d frames in %s", len(staged), len(frames), scratch_dir)
        return staged


__all__ = ["FrameDecodeError", "PayloadStager", "PayloadStagerError", "ScratchDirError"]
