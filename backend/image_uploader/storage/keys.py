"""
Storage key generation.

Pattern: {uuid}-{filename}

The UUID prefix makes every key unique, so unrelated uploads can never
overwrite each other. The original filename stays readable as a suffix
for auditing.
"""
import re
import uuid

# Characters outside this set are replaced in the filename suffix
_UNSAFE_CHARS = re.compile(r'[^A-Za-z0-9._-]')

# Keep keys well under the 1024-byte S3 limit
MAX_FILENAME_LENGTH = 200


def sanitize_filename(filename: str) -> str:
    """
    Reduce a client-supplied filename to a key-safe suffix.

    Drops any directory part and replaces unsafe characters with "_".
    """
    name = filename.replace('\\', '/').rsplit('/', 1)[-1]
    name = _UNSAFE_CHARS.sub('_', name).strip('.')
    if not name:
        return 'file'
    return name[-MAX_FILENAME_LENGTH:]


def generate_storage_key(filename: str) -> str:
    """
    Generate a unique storage key for an upload.

    Args:
        filename: Original filename as sent by the client

    Returns:
        Object key string, e.g. "3f1c...-photo.png"
    """
    return f"{uuid.uuid4()}-{sanitize_filename(filename)}"
