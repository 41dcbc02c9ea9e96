"""Media retrieval and redelivery."""

from media.delivery import OutboundMessenger
from media.downloader import ConcurrentDownloader, filename_for_mime
from media.http import HttpClient
from media.pipeline import MediaPipeline, PipelineState
from media.platforms import PlatformHandler, PlatformRegistry, match_host

__all__ = [
    "ConcurrentDownloader",
    "HttpClient",
    "MediaPipeline",
    "OutboundMessenger",
    "PipelineState",
    "PlatformHandler",
    "PlatformRegistry",
    "filename_for_mime",
    "match_host",
]
