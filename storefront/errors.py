"""Exceptions raised by the storefront core.

The HTTP layer in ``storefront.main`` translates these into responses.
"""

from typing import Optional


class CatalogRequestError(Exception):
    """A call to the remote catalog or seller API failed.

    ``status_code`` is the upstream HTTP status, or ``None`` when the request
    never got a response (connection refused, timeout, ...).
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class UnknownThemeError(Exception):
    """An active shop carries a template identifier with no theme."""

    def __init__(self, template_page: Optional[str]) -> None:
        super().__init__(f"No theme for template '{template_page}'")
        self.template_page = template_page


class PaymentError(Exception):
    """The card processor rejected or failed a charge."""

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message)
        self.status_code = status_code


class PaymentNotConfigured(Exception):
    """No processor secret key is configured."""
