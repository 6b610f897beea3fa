"""Ordered ABI-preference list for the running platform (most preferred first)."""

from __future__ import annotations

import os
import platform
import subprocess

from loguru import logger

# machine() value -> Android-style ABI names, most preferred first
_MACHINE_ABIS: dict[str, tuple[str, ...]] = {
    "aarch64": ("arm64-v8a", "armeabi-v7a", "armeabi"),
    "arm64": ("arm64-v8a", "armeabi-v7a", "armeabi"),
    "armv8l": ("arm64-v8a", "armeabi-v7a", "armeabi"),
    "armv7l": ("armeabi-v7a", "armeabi"),
    "armv7": ("armeabi-v7a", "armeabi"),
    "x86_64": ("x86_64", "x86"),
    "amd64": ("x86_64", "x86"),
    "i386": ("x86",),
    "i686": ("x86",),
    "x86": ("x86",),
}


def _android_abilist() -> list[str]:
    """Query ro.product.cpu.abilist via getprop when running on Android."""
    if "ANDROID_ROOT" not in os.environ:
        return []
    try:
        out = subprocess.run(
            ["getprop", "ro.product.cpu.abilist"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("getprop unavailable: {}", exc)
        return []
    return [abi.strip() for abi in out.stdout.split(",") if abi.strip()]


def supported_abis(override: list[str] | None = None) -> list[str]:
    """
    Return the platform's ABI-preference list.

    An explicit non-empty override wins; on Android the system abilist is
    used; otherwise the list is derived from platform.machine().
    """
    if override:
        return [str(abi).strip() for abi in override if str(abi).strip()]
    abis = _android_abilist()
    if abis:
        return abis
    machine = platform.machine().strip().lower()
    return list(_MACHINE_ABIS.get(machine, (machine,) if machine else ()))


def device_info() -> dict[str, str]:
    """Device summary shown by `prismgl status`."""
    uname = platform.uname()
    return {
        "device": uname.node or "unknown",
        "model": uname.machine or "unknown",
        "system": f"{uname.system} {uname.release}".strip(),
        "python": platform.python_version(),
    }
