"""
Constants used internally by gallery-image.

These are implementation-level values that should not be overridden
via config files or CLI arguments.
"""

# Thumbnails are always re-encoded with one fixed raster format
THUMBNAIL_FORMAT = "JPEG"
THUMBNAIL_EXTENSION = "jpeg"

# Composite canvas
COMPOSITE_FORMAT = "TIFF"
COLOR_MODE_RGBA = "RGBA"
COLOR_MODE_RGB = "RGB"
COLOR_BACKGROUND = (48, 48, 48, 255)  # #303030

# Pyramidal tiling
MAX_TILE_SIZE = 256
TILE_ALIGNMENT = 16
PYRAMID_EXTENSION = "tif"

# Suffix marking an id that only exists in memory
BUFFER_ID_SUFFIX = "-buffer"

# EXIF orientation tag
EXIF_ORIENTATION_TAG = 0x0112

# IIIF Presentation 3
IIIF_CONTEXT = "http://iiif.io/api/presentation/3/context.json"
IIIF_LANGUAGE = "en"
IIIF_MOTIVATION = "painting"

# Extensions that map to a different MIME subtype
MIME_ALIASES = {"jpg": "jpeg", "tif": "tiff"}

# Composite naming
COMPOSITE_NAME_SUFFIX = "-stitch"
LAYOUT_JSON_SUFFIX = "-layout.json"
