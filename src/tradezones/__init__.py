"""tradezones: order-validation zones and settlement lock hooks."""

__version__ = "0.4.0"
