"""
Host and storage facts for the benchmark report.

Every platform gets its own HostProfile; the collectors call each getter on
its own so that one missing fact shows up as None instead of failing the
whole collection.
"""

import json
import logging
import os
import platform
import plistlib
import subprocess
from typing import Callable, Dict, List, Optional, Type

import psutil

from .models import FactMap

logger = logging.getLogger(__name__)

SYS_CLASS_BLOCK = "/sys/class/block"

STORAGE_KEYS = (
    "friendlyName",
    "logicalSectorSize",
    "physicalSectorSize",
    "deviceCacheEnabled",
    "powerProtected",
)


class HostProfile:
    """Portable fallback; platform profiles override what they know better."""

    name = "generic"

    def processor(self) -> Optional[str]:
        return platform.processor() or None

    def total_memory(self) -> Optional[str]:
        return str(psutil.virtual_memory().total)

    def os_name(self) -> Optional[str]:
        return platform.system() or None

    def os_build(self) -> Optional[str]:
        return platform.release() or None

    def storage(self, path: str) -> Optional[FactMap]:
        return None


class LinuxProfile(HostProfile):
    name = "linux"

    def processor(self) -> Optional[str]:
        with open("/proc/cpuinfo", "r") as fp:
            for line in fp:
                if line.startswith("model name"):
                    return line.split(":", 1)[1].strip()
        return super().processor()

    def os_name(self) -> Optional[str]:
        try:
            release = platform.freedesktop_os_release()
        except OSError:
            return super().os_name()
        return release.get("PRETTY_NAME") or release.get("NAME")

    def storage(self, path: str) -> Optional[FactMap]:
        device = _device_for_path(path)
        if not device or not device.startswith("/dev/"):
            return None
        disk = _linux_parent_disk(os.path.basename(device))
        if disk is None:
            return None
        queue = os.path.join("/sys/block", disk, "queue")
        write_cache = _read_sys(os.path.join(queue, "write_cache"))
        return {
            "friendlyName": _read_sys(os.path.join("/sys/block", disk, "device", "model")) or disk,
            "logicalSectorSize": _read_sys(os.path.join(queue, "logical_block_size")),
            "physicalSectorSize": _read_sys(os.path.join(queue, "physical_block_size")),
            "deviceCacheEnabled": None if write_cache is None else str(write_cache == "write back"),
            # the kernel does not report power-loss protection
            "powerProtected": None,
        }


WINDOWS_STORAGE_SCRIPT = """
$d = Get-Partition -DriveLetter %(drive)s | Get-Disk
$p = Get-PhysicalDisk | Where-Object { $_.DeviceId -eq [string]$d.Number }
$a = $p | Get-StorageAdvancedProperty
[pscustomobject]@{
    FriendlyName = $p.FriendlyName
    LogicalSectorSize = $p.LogicalSectorSize
    PhysicalSectorSize = $p.PhysicalSectorSize
    IsDeviceCacheEnabled = $a.IsDeviceCacheEnabled
    IsPowerProtected = $a.IsPowerProtected
} | ConvertTo-Json -Compress
"""


class WindowsProfile(HostProfile):
    name = "windows"

    def processor(self) -> Optional[str]:
        return _powershell("(Get-CimInstance Win32_Processor | Select-Object -First 1).Name") or None

    def os_name(self) -> Optional[str]:
        return _powershell("(Get-CimInstance Win32_OperatingSystem).Caption") or None

    def os_build(self) -> Optional[str]:
        return _powershell("(Get-CimInstance Win32_OperatingSystem).BuildNumber") or None

    def storage(self, path: str) -> Optional[FactMap]:
        drive = _drive_letter(path)
        if not drive:
            return None
        raw = _powershell(WINDOWS_STORAGE_SCRIPT % {"drive": drive})
        if not raw:
            return None
        data = json.loads(raw)
        return {
            "friendlyName": _fact(data.get("FriendlyName")),
            "logicalSectorSize": _fact(data.get("LogicalSectorSize")),
            "physicalSectorSize": _fact(data.get("PhysicalSectorSize")),
            "deviceCacheEnabled": _fact(data.get("IsDeviceCacheEnabled")),
            "powerProtected": _fact(data.get("IsPowerProtected")),
        }


class DarwinProfile(HostProfile):
    name = "darwin"

    def processor(self) -> Optional[str]:
        return _run(["sysctl", "-n", "machdep.cpu.brand_string"]) or None

    def os_name(self) -> Optional[str]:
        version = platform.mac_ver()[0]
        return "macOS %s" % version if version else super().os_name()

    def os_build(self) -> Optional[str]:
        return _run(["sysctl", "-n", "kern.osversion"]) or None

    def storage(self, path: str) -> Optional[FactMap]:
        device = _device_for_path(path)
        if not device:
            return None
        proc = subprocess.run(
            ["diskutil", "info", "-plist", device], capture_output=True, check=True
        )
        info = plistlib.loads(proc.stdout)
        block_size = info.get("DeviceBlockSize")
        return {
            "friendlyName": _fact(info.get("MediaName")),
            "logicalSectorSize": _fact(block_size),
            "physicalSectorSize": _fact(info.get("PhysicalBlockSize", block_size)),
            "deviceCacheEnabled": None,
            "powerProtected": None,
        }


PROFILES: Dict[str, Type[HostProfile]] = {
    "Linux": LinuxProfile,
    "Windows": WindowsProfile,
    "Darwin": DarwinProfile,
}


def get_profile(system: Optional[str] = None) -> HostProfile:
    system = system or platform.system()
    return PROFILES.get(system, HostProfile)()


def collect_system_facts(profile: Optional[HostProfile] = None) -> FactMap:
    profile = profile or get_profile()
    getters = [
        ("processor", profile.processor),
        ("totalMemory", profile.total_memory),
        ("os", profile.os_name),
        ("osBuild", profile.os_build),
    ]
    return {key: _safe(key, getter) for key, getter in getters}


def collect_storage_facts(profile: Optional[HostProfile], path: str) -> Optional[FactMap]:
    profile = profile or get_profile()
    facts = _safe("storage", profile.storage, path)
    if facts is None:
        return None
    return {key: facts.get(key) for key in STORAGE_KEYS}


def _safe(key: str, getter: Callable, *args):
    try:
        return getter(*args)
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Could not collect %s: %s", key, exc)
        return None


def _fact(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _run(cmd: List[str]) -> str:
    proc = subprocess.run(cmd, capture_output=True, text=True, check=True)
    return proc.stdout.strip()


def _powershell(script: str) -> str:
    return _run(["powershell", "-NoProfile", "-NonInteractive", "-Command", script])


def _drive_letter(path: str) -> Optional[str]:
    drive = os.path.splitdrive(os.path.abspath(path))[0].rstrip(":")
    return drive if len(drive) == 1 else None


def _device_for_path(path: str) -> Optional[str]:
    """Device of the mount point with the longest prefix match for `path`."""
    target = os.path.realpath(path)
    if not os.path.exists(target):
        target = os.path.dirname(target)
    best = None
    for part in psutil.disk_partitions(all=False):
        mount = part.mountpoint
        if target == mount or target.startswith(mount.rstrip(os.sep) + os.sep):
            if best is None or len(mount) > len(best.mountpoint):
                best = part
    return best.device if best else None


def _linux_parent_disk(name: str) -> Optional[str]:
    sys_path = os.path.join(SYS_CLASS_BLOCK, name)
    if not os.path.exists(sys_path):
        return None
    if os.path.exists(os.path.join(sys_path, "partition")):
        return os.path.basename(os.path.dirname(os.path.realpath(sys_path)))
    return name


def _read_sys(path: str) -> Optional[str]:
    try:
        with open(path, "r") as fp:
            return fp.read().strip() or None
    except OSError:
        return None
