"""saafy - async music playback engine"""

__version__ = "1.0.0"
