"""New Relic logging integration helpers."""

from collections.abc import MutableMapping
from typing import Any

import newrelic.agent


def newrelic_error_processor(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Processor that reports error-level logs to New Relic.

    Passes every event through unchanged. When the agent is not initialized,
    notice_error is a no-op.
    """
    if method_name in ("error", "critical"):
        newrelic.agent.notice_error(
            attributes={
                "log_message": str(event_dict.get("event", event_dict.get("message", ""))),
                "logger": str(event_dict.get("logger", "")),
            }
        )

    return event_dict
