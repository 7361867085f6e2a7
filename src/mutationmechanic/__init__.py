"""MutationMechanic: variant annotation caching, analysis history and presets."""

__version__ = "0.4.0"
