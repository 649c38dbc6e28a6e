"""
Feature Tracking - keypoint detection, description and matching.

Wraps the classical OpenCV detectors, descriptor extractors and matchers
used for frame-to-frame feature tracking and exposes them as a library,
an HTTP service and a command-line tool.
"""

__version__ = "0.1.0"
