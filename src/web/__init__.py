"""
HTTP surface: still-image detection and a live preview of the video pump.
"""
