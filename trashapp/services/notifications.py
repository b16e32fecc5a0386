import logging

from trashapp.models.pickup import Pickup
from trashapp.models.user import User

logger = logging.getLogger(__name__)


class Notifier:
    """Email/SMS delivery.

    No provider is wired in yet: messages are written to the log so the
    tokens can be picked up during development.
    """

    async def send_email_verification(self, user: User, token: str) -> None:
        logger.info("Email verification token for %s: %s", user.email, token)

    async def send_password_reset(self, user: User, token: str) -> None:
        logger.info("Password reset token for %s: %s", user.email, token)

    async def relay_to_driver(self, driver: User, pickup: Pickup, sender: User, message: str) -> None:
        logger.info(
            "Message for driver %s (%s) about pickup %s from %s: %s",
            driver.id,
            driver.phone or driver.email,
            pickup.id,
            sender.email,
            message,
        )


notifier = Notifier()
