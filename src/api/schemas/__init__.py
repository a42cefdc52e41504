"""Response schemas shared by every API module.

Module-specific request and response models live next to their routes
(``src/api/<module>/schemas.py``).
"""
