"""Structural models of the supported CI platforms and their serializers."""

from ci_composer.platforms.base import Platform
from ci_composer.platforms.serializers import PlatformModel, serialize

__all__ = ["Platform", "PlatformModel", "serialize"]
