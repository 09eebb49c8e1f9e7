"""K-Frame UDP control client.

Drives a broadcast video switcher over its binary UDP handshake-and-control
protocol: two-phase handshake, dynamic data port, keepalive supervision and
macro / AUX / suite commands.
"""

__version__ = "0.3.0"
