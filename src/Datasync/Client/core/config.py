# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DatasyncConfig:
    """
    Configuration settings for Datasync client operations.

    :param api_version: Value sent in the ``ZUMO-API-VERSION`` header. Default is ``"3.0.0"``.
    :type api_version: str
    :param property_naming: Naming policy applied to dataclass field names when they are
        sent on the wire. ``"camelCase"`` (default) turns ``release_date`` into ``releaseDate``;
        ``None`` sends field names unchanged.
    :type property_naming: str or None
    :param user_agent: Optional ``User-Agent`` header value.
    :type user_agent: str or None
    :param installation_id: Optional ``X-ZUMO-INSTALLATION-ID`` header value.
    :type installation_id: str or None
    :param auth_scope: Token scope requested from the credential. Defaults to ``"<endpoint>/.default"``.
    :type auth_scope: str or None
    :param http_retries: Maximum number of attempts for HTTP requests that fail at the network level (default: 5).
    :type http_retries: int or None
    :param http_backoff: Base delay in seconds for exponential backoff (default: 0.5).
    :type http_backoff: float or None
    :param http_timeout: Request timeout in seconds (default: method-dependent).
    :type http_timeout: float or None
    """

    api_version: str = "3.0.0"
    property_naming: Optional[str] = "camelCase"
    user_agent: Optional[str] = None
    installation_id: Optional[str] = None
    auth_scope: Optional[str] = None

    # HTTP retry and resilience configuration
    http_retries: Optional[int] = None
    http_backoff: Optional[float] = None
    http_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.property_naming not in (None, "camelCase"):
            raise ValueError(f"Unsupported property_naming policy: {self.property_naming!r}")

    @classmethod
    def from_env(cls) -> "DatasyncConfig":
        """
        Create a configuration instance with default settings.

        :return: Configuration instance with default values.
        :rtype: ~Datasync.Client.core.config.DatasyncConfig
        """
        # Environment-free defaults
        return cls(
            api_version="3.0.0",
            property_naming="camelCase",
            http_retries=None,  # Will default to 5 in _HttpClient
            http_backoff=None,  # Will default to 0.5 in _HttpClient
            http_timeout=None,  # Will use method-dependent defaults in _HttpClient
        )
