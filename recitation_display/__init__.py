"""
Recitation Display Controller core.

Exposes the coordinator and the content loader; all real implementation
lives in the rd_* modules of this package.
"""

from .rd_content import ContentStore, load_content_store
from .rd_coordinator import DisplayCoordinator
from .rd_version import VERSION

__all__ = ["ContentStore", "DisplayCoordinator", "VERSION", "load_content_store"]
