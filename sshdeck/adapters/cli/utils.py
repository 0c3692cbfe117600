"""
Utility functions for CLI output
"""


def format_size(size_bytes: int) -> str:
    """
    Format bytes to human-readable size string.

    Returns:
        Formatted string like "100 B", "1.5 KB", "2.0 GB"
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
