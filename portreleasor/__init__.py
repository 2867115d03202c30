"""PortReleasor - find which process owns a listening port, and free it."""

VERSION = "1.0.0"
__version__ = VERSION
