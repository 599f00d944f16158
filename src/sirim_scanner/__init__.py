"""SIRIM certification label scanning.

Field extraction and temporal consensus for product certification labels read
from a camera stream.
"""

__version__ = "0.1.0"
