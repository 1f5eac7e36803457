"""
Exception hierarchy shared by the agents, tools and HTTP layer.
"""


class ApplyoError(Exception):
    """Base class for application errors."""
    pass


class ConfigurationError(ApplyoError):
    """A required credential or endpoint is not configured."""
    pass


class LLMResponseError(ApplyoError):
    """The language model returned text that could not be turned into JSON."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class AgentError(ApplyoError):
    """An agent request failed; carries the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 500, payload: dict = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self) -> dict:
        return {"error": self.message, **self.payload}


class MailerError(ApplyoError):
    """Sending an outreach email failed."""
    pass
