"""User management module (``/auth``)."""
