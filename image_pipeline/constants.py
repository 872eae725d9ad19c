"""
Shared constants for the image versions pipeline
"""

# Transient workspace root used when nothing else is configured
DEFAULT_WORKSPACE_ROOT = '/tmp/images/'

# Workspace directory name prefixes (suffixed with a per-invocation token)
INPUT_DIR_PREFIX = 'input-'
OUTPUT_DIR_PREFIX = 'output-'

# Upload policy applied to every derived version
UPLOAD_ACL = 'public-read'
CACHE_MAX_AGE_SECONDS = 15552000  # 180 days

# Encoding defaults for derived versions
DEFAULT_QUALITY = 85
DEFAULT_FORMAT = 'JPEG'

# Pillow format name -> file extension
FORMAT_EXTENSIONS = {
    'JPEG': 'jpg',
    'PNG': 'png',
    'WEBP': 'webp',
    'GIF': 'gif',
}

# Formats without an alpha channel
OPAQUE_FORMATS = ['JPEG']

LOG_PREFIX = 'image_pipeline'
