from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional

from passwordless.application.registry import Passwordless
from passwordless.domain.context import Context
from passwordless.domain.generators import CrockfordGenerator
from passwordless.infrastructure.db.pool import get_pool
from passwordless.infrastructure.db.session_store import PgSessionStore
from passwordless.infrastructure.debug.log_transport import LogTransport
from passwordless.infrastructure.email.composer import SignInEmailComposer, signin_url
from passwordless.infrastructure.email.http_relay_transport import HttpRelayTransport
from passwordless.infrastructure.email.smtp_transport import SmtpTransport
from passwordless.logging import setup_logging
from passwordless.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_passwordless(
    settings: Optional[Settings] = None,
    *,
    pool: Any = None,
    configure_logging: bool = False,
) -> Passwordless:
    """
    Build the registry from settings.

    Registers "email" when SMTP or a mail relay is configured, and a "debug"
    strategy that logs sign-in links otherwise. Without a pool, the shared one
    is created closed; open it (passwordless.infrastructure.db.pool.open_pool)
    before serving. Await Passwordless.aclose() at shutdown to release the
    mail transport.

    Logging is left to the host application unless configure_logging is set,
    which installs the JSON handler at settings.log_level.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level)

    store = PgSessionStore(
        pool if pool is not None else get_pool(settings),
        settings.session_table,
        bcrypt_rounds=settings.bcrypt_rounds,
    )
    pw = Passwordless(store)
    ttl = timedelta(seconds=settings.token_ttl_seconds)

    composer = SignInEmailComposer(
        settings.base_url, strategy="email", site_name=settings.site_name
    )
    if settings.smtp_host:
        logger.info("using SMTP email transport", extra={"smtp_host": settings.smtp_host})
        transport = SmtpTransport(
            settings.smtp_host,
            settings.smtp_from,
            composer,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            starttls=settings.smtp_starttls,
            timeout=settings.smtp_timeout_seconds,
        )
        pw.set_transport(
            "email", transport, CrockfordGenerator(settings.email_token_length), ttl
        )
    elif settings.mail_relay_url:
        logger.info("using HTTP mail relay", extra={"relay": settings.mail_relay_url})
        transport = HttpRelayTransport(
            settings.mail_relay_url, composer, api_key=settings.mail_relay_api_key
        )
        pw.set_transport(
            "email", transport, CrockfordGenerator(settings.email_token_length), ttl
        )
    else:
        logger.warning("no email transport configured, logging sign-in links")
        base_url = settings.base_url

        def not_in_prod(ctx: Context) -> bool:
            return settings.app_env != "prod"

        pw.set_transport(
            "debug",
            LogTransport(
                lambda token, uid: "Login at "
                + signin_url(base_url, "debug", token, uid)
            ),
            CrockfordGenerator(settings.debug_token_length),
            ttl,
            valid=not_in_prod,
        )

    return pw
