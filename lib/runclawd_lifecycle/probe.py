from __future__ import annotations

import enum
import os
import shutil
from typing import Callable

from .errors import PreconditionFailure


class PackageManagerFamily(enum.Enum):
    APT = "apt-get"
    DNF = "dnf"
    YUM = "yum"
    APK = "apk"
    PACMAN = "pacman"
    ZYPPER = "zypper"
    NONE = "none"


# First match wins.
_FAMILY_PRIORITY = (
    PackageManagerFamily.APT,
    PackageManagerFamily.DNF,
    PackageManagerFamily.YUM,
    PackageManagerFamily.APK,
    PackageManagerFamily.PACMAN,
    PackageManagerFamily.ZYPPER,
)


class CapabilityProbe:
    def __init__(self, which: Callable[[str], str | None] = shutil.which):
        self._which = which

    def has_command(self, name: str) -> bool:
        return self._which(name) is not None

    def detect_package_manager_family(self) -> PackageManagerFamily:
        for family in _FAMILY_PRIORITY:
            if self.has_command(family.value):
                return family
        return PackageManagerFamily.NONE


def is_root() -> bool:
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


def require_root() -> None:
    if not is_root():
        raise PreconditionFailure("Please run as root (e.g. sudo runclawd install).")
