"""
Utility Modules

Supporting utilities for the replay scanner:
- Pixel color sampling and tolerance comparison
- Seekable video source with position notifications
- Minimap template matching
"""

from .color import RGB, similar, sample
from .video_source import VideoSource, OpenCVVideoSource
from .minimap_locator import LocateResult, locate, detect_minimap_bounds, apply_map_margins

__all__ = [
    'RGB',
    'similar',
    'sample',
    'VideoSource',
    'OpenCVVideoSource',
    'LocateResult',
    'locate',
    'detect_minimap_bounds',
    'apply_map_margins'
]
