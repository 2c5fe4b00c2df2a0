from __future__ import annotations

import logging


def configure_moelab_logging(*, level: int = logging.INFO) -> None:
    """
    Configure a minimal console logger for moelab.

    Notes:
        - This is opt-in (library code must not call logging.basicConfig()).
        - The handler is only attached if neither the root logger nor the "moelab" logger has handlers.
    """
    root = logging.getLogger()
    moelab_logger = logging.getLogger("moelab")

    # If the user already configured logging, don't interfere.
    if root.handlers or moelab_logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    moelab_logger.addHandler(handler)
    moelab_logger.setLevel(level)
    moelab_logger.propagate = False


__all__ = ["configure_moelab_logging"]
