"""Install decisions: compare the desired state with what the probe found.

These functions never touch the remote host. The only side effect is the
log narrative explaining each decision.
"""

from roundsman.probe import NOT_FOUND, Absent
from roundsman.utils.logging import get_logger

logger = get_logger(__name__)

VERSION_SEPARATOR = "-"
SUPPORTED_DISTRO_MARKER = "Ubuntu"


def normalize_version(version: str) -> str:
    """Strip the separator so ``1.9.3-p125`` matches ruby's ``1.9.3p125``."""
    return version.replace(VERSION_SEPARATOR, "")


def should_install_runtime(
    required: str, installed: str | Absent, strict: bool = True
) -> bool:
    """Decide whether Ruby has to be (re)installed.

    The match is substring containment on the normalized strings, not a
    semantic version comparison. ``strict`` only changes what gets logged:
    an installed Ruby containing the required version is kept either way.
    """
    if installed is NOT_FOUND:
        logger.info("No version of Ruby could be found.")
        return True

    required_version = normalize_version(required)
    if required_version in normalize_version(installed):
        if strict:
            logger.info(
                f"Ruby {installed} matches the required version: {required_version}."
            )
            return False
        logger.info(
            f"Already installed Ruby {installed}, not {required_version}. "
            "Set care_about_ruby_version if you want to fix this."
        )
        return False

    logger.info(
        f"Ruby version mismatch. Installed version: {installed}, "
        f"required is {required_version}"
    )
    return True


def should_install_agent(satisfied: bool) -> bool:
    """Chef is installed unless a gem matching the constraint is present."""
    return not satisfied


def is_supported_distro(banner: str) -> bool:
    return SUPPORTED_DISTRO_MARKER in banner
