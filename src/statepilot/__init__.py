"""Natural-language intent routing and validated state commands."""

__version__ = "0.1.0"
