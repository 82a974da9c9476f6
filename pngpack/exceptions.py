"""Custom exceptions for packing and packaging operations"""


class PackError(Exception):
    """Base exception for pngpack errors"""
    pass


class DuplicateTagError(PackError):
    """Two or more source rectangles share a tag"""

    def __init__(self, tags):
        self.tags = sorted(tags)
        super().__init__(f"All source tags must be unique (duplicates: {', '.join(self.tags)})")


class CanvasExceededError(PackError):
    """No arrangement found within the maximum canvas order"""

    def __init__(self, max_order: int):
        self.max_order = max_order
        side = 2 ** max_order
        super().__init__(
            f"Cannot find a suitable map within maximum allowed dimensions ({side}x{side})"
        )


class PackagingError(PackError):
    """One or more source images failed to decode or blit"""

    def __init__(self, failures):
        self.failures = dict(failures)
        details = "; ".join(f"{tag}: {msg}" for tag, msg in sorted(self.failures.items()))
        super().__init__(f"Packaging failed for {len(self.failures)} image(s): {details}")
