KB = 1024
MB = 1024 * KB
GB = 1024 * MB


def format_size(size_bytes: int) -> str:
    """Human readable size: ``5 bytes``, ``1.50 KB``, ``2.00 MB``, ``1.00 GB``."""
    if size_bytes >= GB:
        return f"{size_bytes / GB:,.2f} GB"
    if size_bytes >= MB:
        return f"{size_bytes / MB:,.2f} MB"
    if size_bytes >= KB:
        return f"{size_bytes / KB:,.2f} KB"
    return f"{size_bytes} bytes"
