"""
Domain models — Pydantic types for the build driver.

All models are re-exported here for convenient access:

    from flangbuild.core.models import Action, BuildConfig, Receipt, Toolchain
"""

from flangbuild.core.models.action import Action, Receipt
from flangbuild.core.models.config import BuildConfig, QuadmathProbe, Toolchain

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # config.py
    "BuildConfig",
    "QuadmathProbe",
    "Toolchain",
]
