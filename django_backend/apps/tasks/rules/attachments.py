import re
import time
import uuid
from typing import Optional

from apps.common.results import Err, Ok

ALLOWED_FILE_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)

MAX_FILE_SIZE = 10 * 1024 * 1024
MAX_TOTAL_SIZE_PER_TASK = 100 * 1024 * 1024
MAX_ATTACHMENTS_PER_TASK = 50
MAX_FILE_NAME_LENGTH = 255

UNSAFE_CHARS_RE = re.compile(r'[<>:"/\\|?*]')
RESERVED_NAME_RE = re.compile(r"^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])(\.|$)", re.IGNORECASE)
EXTENSION_RE = re.compile(r"\.[^/.]+$")
NON_SAFE_RE = re.compile(r"[^a-zA-Z0-9._-]")

FILE_SIZE_UNITS = ("B", "KB", "MB", "GB")


def is_allowed_file_type(file_type: str) -> bool:
    return file_type in ALLOWED_FILE_TYPES


def is_valid_file_size(file_size: int, max_size: int = MAX_FILE_SIZE) -> bool:
    return 0 < file_size <= max_size


def is_valid_file_name(file_name) -> bool:
    """Reject empty, overlong, path-hostile, control-character and Windows device names."""
    if not isinstance(file_name, str):
        return False
    name = file_name.strip()
    if not name or len(name) > MAX_FILE_NAME_LENGTH:
        return False
    if UNSAFE_CHARS_RE.search(name):
        return False
    if any(ord(ch) < 32 for ch in name):
        return False
    if RESERVED_NAME_RE.match(name):
        return False
    return True


def can_add_attachment(existing_count: int, limit: int = MAX_ATTACHMENTS_PER_TASK) -> bool:
    return existing_count < limit


def can_add_attachment_by_size(existing_total: int, new_size: int,
                               limit: int = MAX_TOTAL_SIZE_PER_TASK) -> bool:
    return existing_total + new_size <= limit


def can_delete_attachment(uploaded_by_id: int, user_id: int) -> bool:
    return uploaded_by_id == user_id


def get_file_extension(file_name: str) -> str:
    _, dot, ext = file_name.rpartition(".")
    return ext.lower() if dot else ""


def get_file_icon(file_type: str) -> str:
    if file_type.startswith("image/"):
        return "image"
    if file_type == "application/pdf":
        return "pdf"
    if "word" in file_type or "document" in file_type:
        return "document"
    if "excel" in file_type or "spreadsheet" in file_type:
        return "spreadsheet"
    if file_type.startswith("text/"):
        return "text"
    return "file"


def format_file_size(num_bytes: int) -> str:
    if num_bytes <= 0:
        return "0 B"
    exponent = 0
    while exponent < len(FILE_SIZE_UNITS) - 1 and num_bytes >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(num_bytes / 1024 ** exponent, 2)
    return f"{value:g} {FILE_SIZE_UNITS[exponent]}"


def generate_safe_file_name(original_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    <base>_<millis>_<random>.<ext> with every character outside [A-Za-z0-9._-] replaced by "_".
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    suffix = uuid.uuid4().hex[:6]
    extension = get_file_extension(original_name)
    base = NON_SAFE_RE.sub("_", EXTENSION_RE.sub("", original_name))
    name = f"{base}_{timestamp_ms}_{suffix}"
    return f"{name}.{extension}" if extension else name


def validate_upload(file_name: str, file_size: int, file_type: str, *,
                    existing_count: int, existing_total: int,
                    max_file_size: int = MAX_FILE_SIZE,
                    max_count: int = MAX_ATTACHMENTS_PER_TASK,
                    max_total: int = MAX_TOTAL_SIZE_PER_TASK):
    """Run every upload check in order; the first failure wins."""
    if not is_valid_file_name(file_name):
        return Err("Invalid file name")
    if not is_allowed_file_type(file_type):
        return Err("File type not allowed")
    if not is_valid_file_size(file_size, max_file_size):
        return Err("File size exceeds maximum allowed size")
    if not can_add_attachment(existing_count, max_count):
        return Err("Maximum number of attachments reached for this task")
    if not can_add_attachment_by_size(existing_total, file_size, max_total):
        return Err("Total file size limit exceeded for this task")
    return Ok()
