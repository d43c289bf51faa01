"""Pure Golf caddy service: club recommendations and player personalization."""

__version__ = "0.1.0"
