"""pgpgate - safe subprocess boundary around an OpenPGP engine.

Decrypts messages and verifies detached and inline signatures with GnuPG,
turning its diagnostic stream into a sanitized, structured Status.
"""

__version__ = "0.1.0"
__author__ = "pgpgate Contributors"

from pgpgate.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
