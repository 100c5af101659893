"""Controller wiring configuration and services for the desktop bridge."""

from __future__ import annotations

import logging
from typing import Optional

from clauveo.config.assistant_config import AssistantConfiguration
from clauveo.controllers.recording_controller import RecordingController
from clauveo.services.assistant_request_service import AssistantRequestService
from clauveo.services.process_bridge import ProcessBridge, select_process_bridge
from clauveo.services.recording_session_service import RecordingSessionService


class MainController:
    """Aggregate the controllers required by the front-end."""

    _logger = logging.getLogger(__name__)

    def __init__(
        self,
        configuration: Optional[AssistantConfiguration] = None,
        bridge: Optional[ProcessBridge] = None,
    ) -> None:
        """Bootstrap services and expose domain specific controllers."""

        self.configuration = configuration or AssistantConfiguration()

        self.session_service = RecordingSessionService(
            lock_timeout_seconds=self.configuration.get_session_lock_timeout(),
        )

        self.bridge = bridge or select_process_bridge(self.configuration)
        request_service = AssistantRequestService(
            self.bridge,
            self.configuration.get_scratch_root(),
        )
        self.recording = RecordingController(
            self.session_service,
            request_service,
            mark_session_error_on_failure=self.configuration.should_mark_session_error_on_failure(),
        )

        self._logger.info(
            "Assistant bridge ready: %s (binary '%s')",
            self.bridge.describe(),
            self.configuration.get_binary_name(),
        )
