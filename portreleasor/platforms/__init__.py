import platform

from portreleasor.errors import UnsupportedPlatformError
from portreleasor.platforms.base import PlatformManager
from portreleasor.platforms.darwin import DarwinManager
from portreleasor.platforms.linux import LinuxManager
from portreleasor.platforms.windows import WindowsManager

MANAGERS = {
    "Linux": LinuxManager,
    "Darwin": DarwinManager,
    "Windows": WindowsManager,
}


def get_manager(system=None, **kwargs) -> PlatformManager:
    """Manager for `system` (default: the running OS)."""
    system = system if system is not None else platform.system()
    cls = MANAGERS.get(system)
    if cls is None:
        raise UnsupportedPlatformError(system)
    return cls(**kwargs)


__all__ = ["MANAGERS", "PlatformManager", "get_manager",
           "LinuxManager", "DarwinManager", "WindowsManager"]
