"""Building blocks for obstacle avoidance planners: histograms, geometry, frames, transforms, status and world loading."""

__version__ = "0.1.0"