"""agentstack exception classes."""


class AgentStackError(Exception):
    """Base exception for all agentstack errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(AgentStackError):
    """Raised when client configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class MalformedIdentifierError(AgentStackError):
    """Raised when a global agent ID or an address cannot be parsed."""

    def __init__(self, message: str) -> None:
        super().__init__("MALFORMED_IDENTIFIER", message)


class ChainUnreachableError(AgentStackError):
    """Raised when a chain RPC call fails, times out or reverts."""

    def __init__(
        self, code: str, message: str, chain_id: int | None = None
    ) -> None:
        super().__init__(code, message)
        self.chain_id = chain_id


class RegistrationFetchError(AgentStackError):
    """Raised when a registration file cannot be retrieved."""

    def __init__(self, message: str, uri: str | None = None) -> None:
        super().__init__("REGISTRATION_FETCH_FAILED", message)
        self.uri = uri


class InvalidRegistrationError(AgentStackError):
    """Raised when a registration file violates the expected schema."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__("INVALID_REGISTRATION", message)
        self.field = field


class PaymentChallengeError(AgentStackError):
    """Raised when an x402 payment challenge cannot be decoded."""

    def __init__(self, message: str) -> None:
        super().__init__("PAYMENT_CHALLENGE_UNDECODABLE", message)
