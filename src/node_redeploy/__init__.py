"""Restart a pm2-managed Node.js backend and smoke-test it."""

__version__ = "0.1.0"
