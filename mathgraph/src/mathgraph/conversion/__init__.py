"""Visual graph to information schema conversion."""

from .converter import ConversionError, convert, map_data_type

__all__ = ["ConversionError", "convert", "map_data_type"]
