"""
Domain exceptions for rates and pricing.

Services raise these; app.main maps them to HTTP responses.
"""


class PricingError(Exception):
    """Base exception for pricing and rate errors."""

    status_code = 400

    def __init__(self, message: str = "Pricing error"):
        self.message = message
        super().__init__(self.message)


class InvalidInput(PricingError):
    """Non-positive weight, unknown purity or other unusable input."""

    status_code = 422


class RateUnavailable(PricingError):
    """No rate could be obtained for a requested purity."""

    status_code = 503

    def __init__(self, message: str = "Rates unavailable", purity: str | None = None):
        self.purity = purity
        super().__init__(message)


class StaleRates(PricingError):
    """Current rates are older than the configured freshness window."""

    status_code = 503


class NotFound(PricingError):
    status_code = 404
