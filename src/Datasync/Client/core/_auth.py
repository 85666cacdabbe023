# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Bearer tokens for authenticated Datasync services.

A paged query sends one request per page, so tokens are cached per scope
and reused until they are close to expiry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict

from azure.core.credentials import TokenCredential

_logger = logging.getLogger(__name__)

# Tokens expiring within this many seconds are refreshed before use.
_REFRESH_MARGIN = 300


@dataclass
class _TokenPair:
    resource: str
    access_token: str
    expires_on: int = 0


class _AuthManager:
    """
    Token source for Datasync requests backed by an ``azure-core`` credential.

    :param credential: Credential providing access tokens, e.g. from ``azure-identity``.
    :type credential: ~azure.core.credentials.TokenCredential
    :raises TypeError: If ``credential`` is not a ``TokenCredential``.
    """

    def __init__(self, credential: TokenCredential) -> None:
        if not isinstance(credential, TokenCredential):
            raise TypeError("credential must implement azure.core.credentials.TokenCredential.")
        self.credential: TokenCredential = credential
        self._tokens: Dict[str, _TokenPair] = {}

    def _acquire_token(self, scope: str) -> _TokenPair:
        """
        Return a token for ``scope``, asking the credential only when the cached one is missing or expiring.

        :raises ValueError: If ``scope`` is empty.
        """
        if not scope:
            raise ValueError("scope is required.")
        cached = self._tokens.get(scope)
        if cached is not None and cached.expires_on - _REFRESH_MARGIN > time.time():
            return cached
        token = self.credential.get_token(scope)
        pair = _TokenPair(
            resource=scope,
            access_token=token.token,
            expires_on=int(getattr(token, "expires_on", 0) or 0),
        )
        self._tokens[scope] = pair
        _logger.debug("Acquired token for %s", scope)
        return pair
