
class FolderConfig:
    """Folder configuration constants."""

    MAX_NAME_LENGTH = 100
    MAX_ICON_LENGTH = 50
    DEFAULT_COLOR = "#6366f1"
    DEFAULT_ICON = "folder"


class ImageConfig:
    """Image library configuration constants."""

    MAX_MOVE_BATCH = 100
    MAX_LIST_SIZE = 100
    MAX_PROMPT_LENGTH = 4000
    ROOT_FOLDER_FILTER = "root"
    CONTENT_TYPE = "image/png"
    VARIATION_PROMPT_PREFIX = "[Variation] "
    LIST_CACHE_CONTROL = "private, max-age=60, stale-while-revalidate=300"


class ImageSizes:
    """Supported output sizes with labels."""

    SQUARE = "1024x1024"
    PORTRAIT = "1024x1440"
    LANDSCAPE = "1440x1024"

    ALL = [
        {"value": SQUARE, "label": "Square (1024×1024)"},
        {"value": PORTRAIT, "label": "Portrait (1024×1440)"},
        {"value": LANDSCAPE, "label": "Landscape (1440×1024)"},
    ]
    DEFAULT = SQUARE


class Providers:
    """Generation provider identifiers."""

    GOOGLE_VERTEX = "google-vertex"


class RegexPatterns:
    """Common regex patterns for validation."""

    HEX_COLOR = r'^#[0-9A-Fa-f]{6}$'
    UUID = r'^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$'
