"""Client configuration model."""

from typing import Literal

import pydantic

DEFAULT_PORT = 8998


class LivyClientConfig(pydantic.BaseModel):
    """Connection configuration for a Livy server.

    Immutable once built. TLS material is PEM text, not file paths.
    """

    model_config = pydantic.ConfigDict(frozen=True, strict=True)

    host: str = pydantic.Field(min_length=1, description="Livy server hostname or IP")
    port: int = pydantic.Field(DEFAULT_PORT, description="Livy server port", gt=0, lt=65536)
    use_https: bool = pydantic.Field(False, description="Connect over TLS")
    key: str | None = pydantic.Field(None, description="PEM private key for mutual TLS")
    cert: str | None = pydantic.Field(None, description="PEM certificate for mutual TLS")
    ca: str | None = pydantic.Field(None, description="PEM authority certificate")
    log_level: str = pydantic.Field("INFO", description="Logging level")
    log_format: Literal["logfmt", "json"] = pydantic.Field(
        "logfmt",
        description="Log renderer",
    )

    @property
    def scheme(self) -> str:
        return "https" if self.use_https else "http"

    @property
    def base_url(self) -> str:
        # IPv6 literals need brackets inside a URL authority
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}"

    @property
    def mutual_tls(self) -> bool:
        """True only when both key and certificate are configured."""
        return bool(self.key and self.cert)
