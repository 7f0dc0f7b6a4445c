"""Sales Scout: sold-counter tracking and set sales estimation"""

__version__ = "1.0.0"
