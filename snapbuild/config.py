"""
Tunable constants for placement resolution.

Defaults match the in-game feel: snap within 1.5m of the cursor, hold the
current snap while the cursor moves less than 0.3m, and rotate in 45 degree
steps. Every field can be overridden with a SNAPBUILD_<FIELD> environment
variable (the CLI loads a .env file first).
"""

import os

from pydantic import BaseModel, Field

# Collision layers used by ray casts.
LAYER_GROUND = 1
LAYER_PIECES = 2
ALL_LAYERS = LAYER_GROUND | LAYER_PIECES

ENV_PREFIX = "SNAPBUILD_"


class BuildSettings(BaseModel):
    """Settings shared by discovery, the stability filter, the resolver and the session."""
    snap_radius: float = Field(default=1.5, gt=0)
    stability_threshold: float = Field(default=0.3, ge=0)
    max_candidates: int = Field(default=4, ge=1)
    rotation_step: float = Field(default=45.0, gt=0, lt=360)
    ray_length: float = Field(default=100.0, gt=0)
    placement_mask: int = ALL_LAYERS
    removal_mask: int = LAYER_PIECES
    enforce_support_rules: bool = False

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "BuildSettings":
        """
        Build settings from SNAPBUILD_* environment variables.

        Unset variables keep their defaults. Values are validated by pydantic,
        so a malformed variable raises a ValidationError.
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for name in cls.model_fields:
            value = environ.get(ENV_PREFIX + name.upper())
            if value is not None:
                overrides[name] = value
        return cls(**overrides)
