import logging
import os
import sys

from tierpanel.adapters.dev_notifier import DevNotifier
from tierpanel.adapters.telegram_notifier import TelegramNotifier
from tierpanel.ports.notifier import NotifierPort
from tierpanel.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.
    """
    required = list(rules.ops.required_env)
    if rules.notifications.dispatcher == "telegram":
        required += [rules.notifications.token_env, rules.notifications.chat_id_env]

    missing = [env_var for env_var in required if not os.environ.get(env_var)]
    if missing:
        logger.critical("Missing required environment variables: %s", ", ".join(missing))
        sys.exit(1)

    if rules.notifications.dispatcher not in ("dev", "telegram"):
        logger.critical("Unknown notification dispatcher: %s", rules.notifications.dispatcher)
        sys.exit(1)

    logger.info("Configuration validated.")


def build_notifier(rules: Rules) -> NotifierPort:
    cfg = rules.notifications
    if cfg.dispatcher == "telegram":
        return TelegramNotifier(
            token=os.environ[cfg.token_env],
            chat_id=os.environ[cfg.chat_id_env],
            timeout=cfg.timeout_seconds,
        )
    return DevNotifier()
