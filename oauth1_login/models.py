"""Configuration models for oauth1-login."""

from pydantic import BaseModel, ConfigDict

from oauth1_login.signature import SigningKeyStrategy


class OAuth1aServerSettings(BaseModel):
    """Identity provider endpoints and consumer credentials.

    Immutable for the lifetime of a handshake.
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    consumer_key: str
    consumer_secret: str
    request_token_url: str
    authorize_url: str
    access_token_url: str
    signing_key_strategy: SigningKeyStrategy = SigningKeyStrategy.CONSUMER_SECRET_ONLY


class LoginConfig(BaseModel):
    """Root configuration for the login service."""

    model_config = ConfigDict(extra="forbid")

    providers: dict[str, OAuth1aServerSettings] = {}
    callback_base_url: str = "http://localhost:8000"
    login_path: str = "/login"
    worker_threads: int = 4
    timeout: float = 30.0
    realm: str = "oauth1-login"
    debug: bool = False

    def callback_url(self, provider: str) -> str:
        """URL the provider sends the user back to after authorization."""
        base = self.callback_base_url.rstrip("/")
        return f"{base}{self.login_path}/{provider}"
