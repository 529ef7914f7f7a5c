"""
Error handling for the FrameCraft frame asset service.

Provides specific exception types for the different failure modes
and enough context for debugging and user feedback.
"""

from typing import Dict, List, Any


class FrameCraftError(Exception):
    """Base exception for all FrameCraft errors."""

    def __init__(self, message: str, details: Dict[str, Any] = None, suggestions: List[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'suggestions': self.suggestions
        }


class ValidationError(FrameCraftError):
    """Raised when user input validation fails."""
    pass


class ConfigurationError(FrameCraftError):
    """Raised when configuration is invalid or missing."""
    pass


class ProcessingError(FrameCraftError):
    """Raised when a processing step fails."""
    pass


class AssetError(ProcessingError):
    """Raised when frame assets cannot be used."""
    pass


class RenderError(ProcessingError):
    """Raised when preview compositing fails."""
    pass


class InvalidDimensionsError(ValidationError):
    """Raised when photo dimensions are not positive integers."""

    def __init__(self, width: Any, height: Any):
        super().__init__(
            f"Invalid photo dimensions: {width}x{height}",
            details={'width': width, 'height': height},
            suggestions=[
                "Width and height must both be positive whole numbers of pixels",
                "Make sure the photo finished uploading before requesting a frame"
            ]
        )


class AssetLoadFailure(AssetError):
    """Raised when a requested frame asset cannot be loaded.

    The asset manager recovers from this by switching to the fallback frame.
    """

    def __init__(self, asset_path: str, reason: str = None):
        super().__init__(
            f"Failed to load frame asset: {asset_path}",
            details={'asset_path': asset_path, 'reason': reason},
            suggestions=[
                f"Ensure frame asset exists at: {asset_path}",
                "Check the colour, material and thickness names for typos"
            ]
        )


class FallbackLoadFailure(AssetError):
    """Raised when the default frame asset cannot be loaded either.

    Signals a missing or corrupted asset bundle rather than a bad request.
    """

    def __init__(self, fallback_path: str, requested_path: str = None, reason: str = None):
        super().__init__(
            "Frame asset unavailable: fallback frame could not be loaded",
            details={
                'fallback_path': fallback_path,
                'requested_path': requested_path,
                'reason': reason
            },
            suggestions=[
                f"Restore the default frame asset at: {fallback_path}",
                "Verify FRAME_ASSET_DIR in settings.yaml points at the asset bundle",
                "Redeploy the frame asset bundle if files are corrupted"
            ]
        )


class InvalidImageFormatError(ValidationError):
    """Raised when an uploaded photo format is invalid."""

    def __init__(self, filename: str, detected_type: str = None):
        super().__init__(
            f"Invalid image format: {filename}",
            details={
                'filename': filename,
                'detected_type': detected_type
            },
            suggestions=[
                "Use JPG or PNG photos",
                "Convert the file to a supported format",
                "Ensure the file is not corrupted"
            ]
        )


class FileTooLargeError(ValidationError):
    """Raised when an uploaded photo exceeds the size limit."""

    def __init__(self, filename: str, size_mb: float, limit_mb: float):
        super().__init__(
            f"File too large: {filename} ({size_mb:.1f}MB exceeds {limit_mb:.1f}MB limit)",
            details={
                'filename': filename,
                'size_mb': size_mb,
                'limit_mb': limit_mb
            },
            suggestions=[
                f"Reduce file size to under {limit_mb:.1f}MB",
                "Export the photo at a lower resolution"
            ]
        )


def create_error_recovery_suggestions(error: Exception, context: Dict[str, Any] = None) -> List[str]:
    """Generate contextual recovery suggestions for any error."""
    suggestions = []

    if isinstance(error, FrameCraftError):
        suggestions.extend(error.suggestions)

    if context:
        if context.get('used_fallback'):
            suggestions.append("The preview shows the default frame; the selected style is not available yet")

        if context.get('missing_fields'):
            suggestions.append(f"Fill in the missing fields: {', '.join(context['missing_fields'])}")

    if not suggestions:
        suggestions = [
            "Try uploading a different photo",
            "Try a different frame colour or material",
            "Contact support if the problem persists"
        ]

    return suggestions
