"""streamcircle — self-hosted watch party backend.

Rooms pair an RTMP stream key with a viewer playback key. A media server
calls the ``/hooks/rtmp`` webhooks when a stream starts or stops, and
viewers connect to ``/ws`` to chat and follow the room's live status.

Library API::

    from streamcircle import Config, create_api

    app = create_api(Config(admin_token="s3cret", stream_host="https://media.example"))
"""

from __future__ import annotations

from streamcircle.api.app import create_api
from streamcircle.config import Config

__all__ = ["Config", "create_api"]
