from typing import Optional

import stripe
import structlog

from storefront import config
from storefront.errors import PaymentError, PaymentNotConfigured

logger = structlog.get_logger(__name__)


class StripeGateway:
    def __init__(self, secret_key: str = config.STRIPE_SECRET_KEY, currency: str = config.CHECKOUT_CURRENCY) -> None:
        self.secret_key = secret_key
        self.currency = currency

    def charge(self, payment_method: str, amount: int, description: Optional[str] = None) -> str:
        """Create and immediately confirm a charge; returns the PaymentIntent id."""
        if not self.secret_key:
            raise PaymentNotConfigured("STRIPE_SECRET_KEY is not set")

        logger.info("checkout_started", amount=amount, currency=self.currency, description=description)
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=amount,
                currency=self.currency,
                description=description,
                payment_method=payment_method,
                confirm=True,
                automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            )
        except stripe.CardError as exc:
            logger.warning("checkout_declined", code=exc.code, error=str(exc))
            raise PaymentError(exc.user_message or "Your card was declined", 402) from exc
        except stripe.StripeError as exc:
            logger.error("checkout_failed", error=str(exc))
            raise PaymentError(exc.user_message or "The payment processor is unavailable", 502) from exc

        logger.info("checkout_succeeded", payment_intent=intent.id, status=intent.status)
        return intent.id
