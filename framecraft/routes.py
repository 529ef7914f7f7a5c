"""
Flask routes for the FrameCraft frame asset service
Frame matching, asset resolution and preview rendering endpoints
"""

import io
import math
from pathlib import Path
from flask import Blueprint, request, current_app, jsonify, Response
from PIL import Image, ImageOps, UnidentifiedImageError
from loguru import logger

from .config import load_frame_options
from .errors import (
    FrameCraftError, ValidationError, FallbackLoadFailure,
    InvalidImageFormatError, FileTooLargeError, create_error_recovery_suggestions
)
from .frame_assets import (
    ASPECT_RATIOS, FrameSelection, PhotoDimensions,
    get_optimal_frame_config, normalize_asset_token
)
from .preview import FramePreviewRenderer, PhotoPosition, PreviewSettings, render_to_png_bytes


bp = Blueprint('main', __name__)

SELECTION_FIELDS = ('color_name', 'material_type', 'thickness')
MAX_PHOTO_SCALE = 10.0


def get_asset_manager():
    return current_app.extensions['frame_assets']


@bp.errorhandler(ValidationError)
def handle_validation_error(e):
    logger.warning(f"Validation error: {e}")
    return jsonify(e.to_dict()), 400


@bp.errorhandler(FallbackLoadFailure)
def handle_asset_unavailable(e):
    logger.error(f"Frame asset unavailable: {e.details}")
    return jsonify(e.to_dict()), 503


@bp.errorhandler(FrameCraftError)
def handle_processing_error(e):
    logger.error(f"Processing error: {e}")
    payload = e.to_dict()
    payload['suggestions'] = create_error_recovery_suggestions(e)
    return jsonify(payload), 500


@bp.route('/health', methods=['GET'])
def health():
    manager = get_asset_manager()
    return jsonify({
        'status': 'ok',
        'asset_dir': str(manager.base_dir),
        'cached_assets': manager.cache_size
    })


@bp.route('/api/aspect-ratios', methods=['GET'])
def aspect_ratios():
    return jsonify([{'name': r.name, 'value': r.value} for r in ASPECT_RATIOS])


@bp.route('/api/frame-options', methods=['GET'])
def frame_options():
    """List the colours, materials and thicknesses customers can pick"""
    options = load_frame_options()
    return jsonify({group: [o.model_dump() for o in entries] for group, entries in options.items()})


@bp.route('/api/frame-config', methods=['POST'])
def frame_config():
    """Match photo dimensions and a selection to the best frame template"""
    data = get_json_object()
    dimensions = parse_dimensions(data)
    selection = parse_selection(data)

    config = get_optimal_frame_config(dimensions, selection)
    manager = get_asset_manager()

    logger.info(f"Frame config for {dimensions.width}x{dimensions.height}: "
                f"{config.aspect_ratio} (rotate={config.needs_rotation})")

    return jsonify({
        'color_name': config.color_name,
        'material_type': config.material_type,
        'thickness': config.thickness,
        'aspect_ratio': config.aspect_ratio,
        'needs_rotation': config.needs_rotation,
        'asset_path': manager.construct_frame_path(config)
    })


@bp.route('/api/frame-asset', methods=['POST'])
def frame_asset():
    """Resolve and load the frame asset, reporting whether the fallback was used"""
    data = get_json_object()
    config = get_optimal_frame_config(parse_dimensions(data), parse_selection(data))

    result = get_asset_manager().load_frame_asset(config.asset_config())

    payload = result.to_dict()
    payload.update({'aspect_ratio': config.aspect_ratio, 'needs_rotation': config.needs_rotation})
    if result.is_fallback:
        payload['suggestions'] = create_error_recovery_suggestions(None, {'used_fallback': True})
    return jsonify(payload)


@bp.route('/preview', methods=['POST'])
def preview():
    """Render a PNG preview of the uploaded photo in the selected frame"""
    if 'photo' not in request.files:
        raise ValidationError("No photo file uploaded")

    photo_file = request.files['photo']
    if photo_file.filename == '':
        raise ValidationError("No photo file selected")

    photo = validate_and_open_photo(photo_file)
    selection = parse_selection(request.form)
    position = parse_position(request.form)

    dimensions = PhotoDimensions(photo.width, photo.height)
    config = get_optimal_frame_config(dimensions, selection)
    result = get_asset_manager().resolve_frame_asset(config.asset_config())

    if not result.ok:
        # Plain frame drawn in the selected colour instead
        logger.error(f"Rendering plain frame, asset unavailable: {result.error.details}")

    renderer = FramePreviewRenderer(PreviewSettings.from_config(current_app.config))
    image = renderer.render(
        photo,
        frame_image=result.image,
        needs_rotation=config.needs_rotation,
        frame_color=frame_color_for(selection.color_name),
        matting_color=request.form.get('matting_color'),
        position=position
    )

    response = Response(render_to_png_bytes(image), mimetype='image/png')
    response.headers['X-Frame-Asset-Status'] = result.status
    response.headers['X-Frame-Aspect-Ratio'] = config.aspect_ratio
    response.headers['X-Frame-Needs-Rotation'] = str(config.needs_rotation).lower()
    return response


def _to_int(val):
    if isinstance(val, bool):
        return None
    if isinstance(val, int):
        return val
    try:
        return int(str(val).strip())
    except (TypeError, ValueError):
        return None


def _to_float(val, default: float) -> float:
    if val is None or val == '':
        return default
    try:
        number = float(val)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid number: {val}", details={'value': val})
    if not math.isfinite(number):
        raise ValidationError(f"Number must be finite: {val}", details={'value': val})
    return number


def get_json_object() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object",
                              details={'body_type': type(data).__name__})
    return data


def parse_dimensions(data) -> PhotoDimensions:
    return PhotoDimensions(_to_int(data.get('width')), _to_int(data.get('height')))


def parse_selection(data) -> FrameSelection:
    missing = [field for field in SELECTION_FIELDS if not str(data.get(field) or '').strip()]
    if missing:
        raise ValidationError(
            f"Missing frame selection: {', '.join(missing)}",
            details={'missing_fields': missing},
            suggestions=create_error_recovery_suggestions(None, {'missing_fields': missing})
        )

    invalid = [field for field in SELECTION_FIELDS if not isinstance(data.get(field), str)]
    if invalid:
        raise ValidationError(
            f"Frame selection must be text: {', '.join(invalid)}",
            details={'invalid_fields': invalid}
        )
    return FrameSelection(
        color_name=data['color_name'],
        material_type=data['material_type'],
        thickness=data['thickness']
    )


def parse_position(data) -> PhotoPosition:
    scale = _to_float(data.get('scale'), 1.0)
    if not 0 < scale <= MAX_PHOTO_SCALE:
        raise ValidationError(
            f"Scale must be greater than 0 and at most {MAX_PHOTO_SCALE}",
            details={'scale': scale, 'max_scale': MAX_PHOTO_SCALE}
        )
    return PhotoPosition(
        x=_to_float(data.get('x'), 0.0),
        y=_to_float(data.get('y'), 0.0),
        scale=scale,
        rotation=_to_float(data.get('rotation'), 0.0)
    )


def frame_color_for(color_name: str) -> str:
    """Hex code of a configured colour option, else the name itself"""
    wanted = normalize_asset_token(color_name.strip())
    for option in load_frame_options().get('colors', []):
        if option.hex_code and normalize_asset_token(option.name) == wanted:
            return option.hex_code
    return color_name


def validate_and_open_photo(file) -> Image.Image:
    """Validate an uploaded photo and open it with EXIF orientation applied"""

    file.seek(0, 2)
    size = file.tell()
    file.seek(0)

    max_size = current_app.config.get('MAX_UPLOAD_SIZE', 20 * 1024 * 1024)
    if size > max_size:
        raise FileTooLargeError(
            filename=file.filename,
            size_mb=size / (1024 * 1024),
            limit_mb=max_size / (1024 * 1024)
        )

    allowed_extensions = current_app.config.get('ALLOWED_EXTENSIONS', ['.jpg', '.jpeg', '.png'])
    file_ext = Path(file.filename).suffix.lower()
    if file_ext not in allowed_extensions:
        raise InvalidImageFormatError(file.filename, f"Extension: {file_ext}")

    data = file.read()
    try:
        photo = Image.open(io.BytesIO(data))
        photo.load()
    except (OSError, UnidentifiedImageError) as e:
        raise InvalidImageFormatError(file.filename, f"Corrupted image: {str(e)}")

    photo = ImageOps.exif_transpose(photo)
    logger.info(f"Photo received: {file.filename} ({size} bytes, {photo.width}x{photo.height})")
    return photo
