"""
Motion Overlay - Error types
"""


class MotionOverlayError(Exception):
    """Base class for all motion overlay errors"""


class InvalidConfiguration(MotionOverlayError, ValueError):
    """Simulation or overlay settings were rejected before any state changed"""


class NotInitialized(MotionOverlayError, RuntimeError):
    """Simulation was stepped or rendered before initialize()"""


class InsufficientPoints(MotionOverlayError, ValueError):
    """Stroke has too few points to derive a containment region"""


class IndexOutOfRange(MotionOverlayError, IndexError):
    """Frame index outside [0, frame_count)"""


class EncodingFailure(MotionOverlayError):
    """The encoding sink rejected a frame or failed to finalize"""


class ExportInProgress(MotionOverlayError, RuntimeError):
    """An export was started while another one is still running"""


class ExportCancelled(MotionOverlayError):
    """Export was cancelled between frames"""
