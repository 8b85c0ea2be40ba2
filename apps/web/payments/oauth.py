"""
MercadoPago seller account connection (OAuth).

An owner starts the flow and is sent to MercadoPago's authorization page
carrying a single-use ``state``. MercadoPago redirects back to our callback
with that state and an authorization ``code``; the code is exchanged for the
business's own credentials, which order checkouts and payment webhooks then
use.
"""

import asyncio
import logging
import secrets
from datetime import datetime, timedelta
from urllib.parse import urlencode

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from optima_schemas import OAuthToken

from apps.web.core.models import Client
from apps.web.payments.exceptions import (
    OAuthConnectionError,
    PaymentConfigurationError,
)
from apps.web.payments.mercadopago import MercadoPagoAPI
from apps.web.payments.models import OAuthState

logger = logging.getLogger(__name__)


def oauth_redirect_uri() -> str:
    """Callback URL registered with the MercadoPago application."""
    return f"{settings.PUBLIC_BASE_URL}/payments/mercadopago/oauth/callback"


def _app_credentials() -> tuple[str, str]:
    client_id = settings.MERCADOPAGO_CLIENT_ID
    client_secret = settings.MERCADOPAGO_CLIENT_SECRET
    if not client_id or not client_secret:
        raise PaymentConfigurationError(
            "MercadoPago application credentials are not configured",
            code="oauth_not_configured",
        )
    return client_id, client_secret


def start_connection(client: Client, *, now: datetime | None = None) -> str:
    """
    Issue an OAuth state for ``client`` and build the authorization URL.

    Raises:
        PaymentConfigurationError: If the application credentials are unset.
    """
    app_id, _ = _app_credentials()
    now = now or timezone.now()

    oauth_state = OAuthState.objects.create(
        client=client,
        state=secrets.token_urlsafe(32),
        expires_at=now + timedelta(minutes=settings.MERCADOPAGO_OAUTH_STATE_MINUTES),
    )
    query = urlencode(
        {
            "client_id": app_id,
            "response_type": "code",
            "platform_id": "mp",
            "state": oauth_state.state,
            "redirect_uri": oauth_redirect_uri(),
        }
    )

    logger.info("Started MercadoPago connection for %s", client.slug)
    return f"{settings.MERCADOPAGO_AUTH_URL}?{query}"


def _consume_state(state: str, now: datetime) -> Client:
    """Mark a state used and return its business. A state works once."""
    with transaction.atomic():
        oauth_state = (
            OAuthState.objects.select_for_update(of=("self",))
            .select_related("client")
            .filter(state=state)
            .first()
        )
        if oauth_state is None or not oauth_state.is_usable(now):
            raise OAuthConnectionError(
                "Invalid or expired OAuth state", code="invalid_state_token"
            )
        oauth_state.used_at = now
        oauth_state.save(update_fields=["used_at", "updated_at"])
    return oauth_state.client


async def _exchange_code_async(
    code: str, app_id: str, app_secret: str, api: MercadoPagoAPI | None
) -> OAuthToken:
    if api is not None:
        return await api.exchange_oauth_code(code, oauth_redirect_uri(), app_id, app_secret)
    async with MercadoPagoAPI() as owned:
        return await owned.exchange_oauth_code(
            code, oauth_redirect_uri(), app_id, app_secret
        )


def complete_connection(
    state: str,
    code: str,
    *,
    api: MercadoPagoAPI | None = None,
    now: datetime | None = None,
) -> Client:
    """
    Finish a connection: validate the state, exchange the code, store credentials.

    The state is consumed before the exchange, so a failed exchange needs a
    fresh start from the dashboard.

    Raises:
        OAuthConnectionError: If the state is unknown, used or expired.
        PaymentConfigurationError: If the application credentials are unset.
        PaymentProviderError: If the token exchange fails.
    """
    app_id, app_secret = _app_credentials()
    now = now or timezone.now()

    client = _consume_state(state, now)
    token = asyncio.run(_exchange_code_async(code, app_id, app_secret, api))

    client.mercadopago_access_token = token.access_token
    client.mercadopago_refresh_token = token.refresh_token
    client.mercadopago_user_id = token.user_id
    client.mercadopago_public_key = token.public_key
    client.mercadopago_connected_at = now
    client.save(
        update_fields=[
            "mercadopago_access_token",
            "mercadopago_refresh_token",
            "mercadopago_user_id",
            "mercadopago_public_key",
            "mercadopago_connected_at",
            "updated_at",
        ]
    )

    logger.info(
        "Connected MercadoPago account %s for %s", token.user_id or "?", client.slug
    )
    return client
