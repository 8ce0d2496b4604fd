"""Document viewer: renderer adapter and viewing sessions."""

from studyhub.viewer.renderer import (
    DocumentLoadError,
    FitzDocumentLoader,
    RenderTarget,
)
from studyhub.viewer.session import (
    DocumentViewerSession,
    ViewerSessionManager,
    ViewerState,
    ViewerStateError,
)

__all__ = [
    "DocumentLoadError",
    "DocumentViewerSession",
    "FitzDocumentLoader",
    "RenderTarget",
    "ViewerSessionManager",
    "ViewerState",
    "ViewerStateError",
]
