from .channel_map import ChannelMap, load_channel_map
from .index import PrimaryIndex, ReverseIndex, RowId, RowStore

__all__ = [
    "ChannelMap",
    "load_channel_map",
    "PrimaryIndex",
    "ReverseIndex",
    "RowId",
    "RowStore",
]
