"""
Target Resolver: expands a target mode into concrete target triples.

No network access. The host triple is derived from the running interpreter's
platform; callers can bypass detection by passing an explicit host.
"""

import platform
import sys
import sysconfig
from typing import Iterable, Optional

from .enums import ErrorCode, TargetMode
from .exceptions import InvalidConfigurationError
from .platforms import TIER_1_TARGETS

# platform.machine() spellings -> triple architecture
_ARCH_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "i386": "i686",
    "i486": "i686",
    "i586": "i686",
    "i686": "i686",
    "x86": "i686",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv7l": "armv7",
    "armv7": "armv7",
}


def _normalize_arch(machine: str) -> Optional[str]:
    return _ARCH_ALIASES.get(machine.strip().lower())


def _linux_environment(arch: str, libc_name: str) -> str:
    """Pick the triple environment suffix for Linux."""
    musl = "musl" in libc_name.lower()
    if arch == "armv7":
        return "musleabihf" if musl else "gnueabihf"
    return "musl" if musl else "gnu"


def host_target_for(
    system: str,
    machine: str,
    libc_name: str = "",
    build_platform: str = "",
) -> Optional[str]:
    """
    Map platform facts to a target triple.

    Args:
        system: sys.platform value ('linux', 'darwin', 'win32', 'freebsd14', ...)
        machine: platform.machine() value
        libc_name: platform.libc_ver()[0] on Linux ('glibc', 'musl' or '')
        build_platform: sysconfig.get_platform(), used to spot MinGW builds

    Returns:
        The target triple, or None for an unrecognised platform
    """
    arch = _normalize_arch(machine)
    if arch is None:
        return None

    if system.startswith("linux"):
        return f"{arch}-unknown-linux-{_linux_environment(arch, libc_name)}"

    if system == "darwin":
        if arch not in ("x86_64", "aarch64"):
            return None
        return f"{arch}-apple-darwin"

    if system in ("win32", "cygwin"):
        if arch == "armv7":
            return None
        env = "gnu" if "mingw" in build_platform.lower() else "msvc"
        if env == "gnu" and arch == "aarch64":
            return "aarch64-pc-windows-gnullvm"
        return f"{arch}-pc-windows-{env}"

    if system.startswith("freebsd"):
        if arch not in ("x86_64", "i686", "aarch64"):
            return None
        return f"{arch}-unknown-freebsd"

    return None


def detect_host_target() -> str:
    """
    Detect the target triple of the running platform.

    Raises:
        InvalidConfigurationError: If the platform cannot be mapped to a triple
    """
    machine = platform.machine()
    libc_name = platform.libc_ver()[0] if sys.platform.startswith("linux") else ""
    # 32-bit interpreters on 64-bit Windows report the OS architecture
    if sys.platform == "win32" and sys.maxsize <= 2**32:
        machine = "x86"

    target = host_target_for(sys.platform, machine, libc_name, sysconfig.get_platform())
    if target is None:
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=(
                f"Cannot determine the host target for platform {sys.platform!r} "
                f"on {machine!r}; pass the host triple explicitly"
            ),
            details={"platform": sys.platform, "machine": machine},
        )
    return target


def resolve_targets(
    mode: TargetMode,
    host_target: str,
    tier1_targets: Iterable[str] = TIER_1_TARGETS,
) -> frozenset[str]:
    """
    Expand a target mode into the set of targets to check.

    Args:
        mode: ALL for every tier-1 target, CURRENT for the host only
        host_target: The host triple
        tier1_targets: Tier-1 list to use for ALL

    Returns:
        Non-empty set of target triples

    Raises:
        InvalidConfigurationError: If the resulting set is empty
    """
    if mode == TargetMode.ALL:
        targets = frozenset(tier1_targets)
    else:
        targets = frozenset({host_target}) if host_target else frozenset()

    if not targets:
        raise InvalidConfigurationError(
            code=ErrorCode.INVALID_CONFIGURATION.value,
            message=f"Target mode {mode.value!r} resolved to an empty target set",
            details={"mode": mode.value},
        )
    return targets
