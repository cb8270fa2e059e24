"""Request-level errors of the relay.

Each one is answered with a plain-text 400 and never closes or deregisters an
existing subscriber.
"""
from __future__ import annotations


class RelayError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateSubscriber(RelayError):
    def __init__(self, topic: str):
        super().__init__(f"An SSE connection already exists for URL path: {topic}")
        self.topic = topic


class NoSubscriber(RelayError):
    def __init__(self, topic: str):
        super().__init__(f"No SSE connection for URL path: {topic}")
        self.topic = topic


class MalformedPayload(RelayError):
    def __init__(self, reason: str):
        super().__init__("Bad JSON data.")
        self.reason = reason


class UnsupportedMethod(RelayError):
    def __init__(self, method: str):
        super().__init__(f"Bad /sse HTTP method: {method}")
        self.method = method
