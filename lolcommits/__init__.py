"""Take a snapshot with your webcam every time you git commit code."""

__version__ = "0.1.0"
