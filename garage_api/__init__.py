"""
Garage Booking API.
"""
__version__ = "2.0.0"
