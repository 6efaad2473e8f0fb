"""
Parking System

Tracks vehicles entering and leaving a parking facility, allocates spots
and prices each stay.
"""

__version__ = "1.0.0"
