"""
                Restaurant Services

Three independent HTTP services backing a restaurant ordering app:
authentication (Firebase), orders (MySQL) and feedback (MongoDB).

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
