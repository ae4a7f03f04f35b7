"""Email channel registry.

``EMAIL_CHANNEL`` selects the adapter: ``fake`` records messages in memory,
``log`` writes them to the application log.
"""

from shared import config

_channel_instances: dict[str, object] = {}


def get_channel(channel_type: str | None = None):
    """Return the configured email adapter (singleton per channel type)."""
    channel_type = channel_type or config.EMAIL_CHANNEL
    if channel_type not in _channel_instances:
        if channel_type == "fake":
            from notifications.channel.fake_email import FakeEmailAdapter

            _channel_instances[channel_type] = FakeEmailAdapter()
        elif channel_type == "log":
            from notifications.channel.log_email import LogEmailAdapter

            _channel_instances[channel_type] = LogEmailAdapter()
        else:
            raise ValueError(f"Unknown email channel: {channel_type}")

    return _channel_instances[channel_type]


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
