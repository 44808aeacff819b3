from .base import Base
from .feature_toggle import FeatureToggle

__all__ = ['Base', 'FeatureToggle']
