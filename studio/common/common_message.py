
class CommonMessage:
    # Authentication
    UNAUTHORIZED = "Unauthorized"

    # Folders
    FOLDER_NOT_FOUND = "Folder not found"
    PARENT_FOLDER_NOT_FOUND = "Parent folder not found"
    TARGET_FOLDER_NOT_FOUND = "Target folder not found"
    FOLDER_SELF_PARENT = "Cannot set folder as its own parent"
    FOLDER_CYCLE = "Cannot move folder into its own subfolder"
    FOLDER_FIELD_NOT_NULL = "Field '{field}' cannot be null"

    # Images
    IMAGE_NOT_FOUND = "Image not found"
    IMAGE_DOWNLOAD_FAILED = "Failed to download image"

    # Generation
    UNKNOWN_MODEL = "Unknown model: {model}"
    MODEL_NO_GENERATION = "Model {model} does not support image generation"
    MODEL_NO_VARIATION = "Model {model} does not support image variations"
    NO_GENERATION_MODEL = "No image generation model is available"
    INVALID_IMAGE_SIZE = "Invalid image size: {size}"
    INVALID_SOURCE_IMAGE = "Source image is not valid base64 data"
    CONTENT_REJECTED = "Content rejected: {reason}"
    PROVIDER_RATE_LIMITED = "Rate limited: Too many requests. Please wait a moment and try again."
    PROVIDER_UNAVAILABLE = "The image generation service is temporarily unavailable. Please try again later."

    # Collaborators
    BLOB_STORE_NOT_CONFIGURED = "Image storage is not configured"

    # Generic
    INVALID_REQUEST = "Invalid request data"
    INTERNAL_ERROR = "An unexpected error occurred"
