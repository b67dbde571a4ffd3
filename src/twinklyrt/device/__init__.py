"""Twinkly controller communication: HTTP session, metadata and real-time frames."""

from .buffer import FrameBuffer
from .controller import DeviceController, monotonic_ms
from .frame import MAX_CHUNK, RT_PORT, FrameEncoder, crc32
from .http import XledHttpClient
from .layout import normalize_layout
from .metadata import MetadataFetcher, firmware_generation
from .products import ProductCatalog, get_product_catalog
from .schema import ProductCatalogSchema, ProductFamily
from .session import STATUS_CODES, DeviceSession, SessionManager, describe_status
from .transport import UdpTransport

__all__ = [
    "DeviceController",
    "DeviceSession",
    "FrameBuffer",
    "FrameEncoder",
    "MAX_CHUNK",
    "MetadataFetcher",
    "ProductCatalog",
    "ProductCatalogSchema",
    "ProductFamily",
    "RT_PORT",
    "STATUS_CODES",
    "SessionManager",
    "UdpTransport",
    "XledHttpClient",
    "crc32",
    "describe_status",
    "firmware_generation",
    "get_product_catalog",
    "monotonic_ms",
    "normalize_layout",
]
