from typing import Optional


class SignalingError(Exception):
    """Base error reported back to the sending connection as an `error` event"""

    code = "signaling-error"

    def __init__(self, message: str, event: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.event = event

    def to_payload(self) -> dict:
        payload = {"code": self.code, "message": self.message}
        if self.event:
            payload["event"] = self.event
        return payload


class InvalidMessage(SignalingError):
    code = "invalid-message"


class NotFound(SignalingError):
    code = "not-found"
