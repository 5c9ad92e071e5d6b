"""
Exceptions raised by the layout reconstruction pipeline.

Hierarchy:

- ReconstructionError (base)
  - InputRejectedError (raised before any page is processed)
    - InputTooLargeError
    - CorruptDocumentError
    - PasswordProtectedError
  - PageProcessingError (recovered by the assembler, one page at a time)
    - PageRenderError
  - ImageDecodeError (recovered per image)
  - NoExtractableContentError (every page produced nothing)
"""

from typing import Optional


class ReconstructionError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class InputRejectedError(ReconstructionError):
    """The input document cannot be processed at all."""


class InputTooLargeError(InputRejectedError):
    """The input exceeds the configured size ceiling."""

    def __init__(self, size_bytes: int, limit_bytes: int):
        super().__init__(
            f"Input is {size_bytes / 1024 / 1024:.2f} MB, "
            f"the limit is {limit_bytes / 1024 / 1024:.2f} MB"
        )
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class CorruptDocumentError(InputRejectedError):
    """The container could not be parsed."""


class PasswordProtectedError(InputRejectedError):
    """The container is encrypted and needs a password."""


class PageProcessingError(ReconstructionError):
    """A single page failed during one of the processing stages."""

    def __init__(
        self,
        message: str,
        page_number: int,
        stage: str = "unknown",
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error)
        self.page_number = page_number
        self.stage = stage


class PageRenderError(PageProcessingError):
    """The rasterizer could not render a page."""

    def __init__(self, page_number: int, original_error: Optional[Exception] = None):
        detail = f": {original_error}" if original_error else ""
        super().__init__(
            f"Failed to render page {page_number}{detail}",
            page_number,
            stage="render",
            original_error=original_error
        )


class ImageDecodeError(ReconstructionError):
    """A raw raster descriptor could not be turned into RGBA pixels."""


class NoExtractableContentError(ReconstructionError):
    """No page of the document produced any content block."""

    def __init__(self, message: str = "No extractable content found in document"):
        super().__init__(message)
