"""Token acquisition for the Argo CD API."""

from __future__ import annotations

import httpx

from .client import ArgoCDClient, ArgoCDError, AuthenticationError
from .config import ArgoCDSettings, Config
from .log import get_logger

logger = get_logger("auth")


async def get_auth_token(
    settings: ArgoCDSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Exchange username/password for a session token.

    The session is created against ``auth_url`` when set, otherwise against
    the API server. The token is then checked by reading the user's account;
    a failed check is logged and the token is returned anyway, since
    accounts without the ``get`` permission can still use it.

    Raises:
        AuthenticationError: if the session cannot be created or the server
            returns an empty token.
    """
    common = dict(
        insecure=settings.insecure,
        plaintext=settings.plaintext,
        cert_file=settings.cert_file,
        grpc_web_root_path=settings.grpc_web_root_path,
        transport=transport,
    )

    async with ArgoCDClient(settings.auth_url or settings.server, **common) as session_client:
        try:
            token = await session_client.create_session(settings.username, settings.password)
        except ArgoCDError as e:
            raise AuthenticationError(
                f"failed to create session: {e.message}", status_code=e.status_code
            ) from e

    if not token:
        raise AuthenticationError("received empty token from Argo CD server")
    logger.info("auth.session_created", username=settings.username)

    async with ArgoCDClient(settings.server, token, **common) as account_client:
        try:
            await account_client.get_account(settings.username)
        except ArgoCDError as e:
            logger.warning("auth.verify_failed", username=settings.username, error=e.message)

    return token


async def resolve_token(
    config: Config,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Return the configured token, or log in with username/password.

    Raises:
        AuthenticationError: if neither a token nor credentials are configured.
    """
    settings = config.argocd
    if settings.token:
        return settings.token
    if settings.username and settings.password:
        return await get_auth_token(settings, transport=transport)
    raise AuthenticationError(
        "authentication required: set token or username/password in config"
    )
