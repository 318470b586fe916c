import re

_UNSAFE = re.compile(r"[^A-Za-z0-9_. -]")


def sanitize_filename(filename: str, extension: str) -> str:
    """
    Keep only [A-Za-z0-9_. -] and make sure the name ends with the extension.
    e.g. ("ClassRecord_IT 301/BSIT-3A", "xlsx") -> "ClassRecord_IT 301BSIT-3A.xlsx"
    """
    ext = "." + extension.lstrip(".")
    cleaned = _UNSAFE.sub("", filename or "")
    if not cleaned.lower().endswith(ext.lower()):
        cleaned += ext
    return cleaned


def content_disposition(filename: str, download: bool = True) -> str:
    disposition = "attachment" if download else "inline"
    return f'{disposition}; filename="{filename}"'
