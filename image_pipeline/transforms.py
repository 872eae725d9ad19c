"""
Image transformation engines.

An engine reads every image in an input directory and writes derived
versions into an output directory:

- the primary version: the image at its original resolution
- one file per version spec, resized according to the engine

File names follow a convention callers rely on to find the other versions
from the primary key alone. For 'photo.jpg' at 815x400:

    photo_aspR_2.038_w815_h400_e.jpg        (primary)
    photo_aspR_2.038_w815_h400_e400.jpg     (version with suffix '400')

Each engine returns a manifest {source file name: [primary, *versions]}.
"""

import os
from typing import Any, Callable, Dict, List, Optional, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from .constants import (
    DEFAULT_FORMAT,
    DEFAULT_QUALITY,
    FORMAT_EXTENSIONS,
    LOG_PREFIX,
    OPAQUE_FORMATS,
)
from .models import ProcessingManifest, ProcessingMode

FORMAT_ALIASES = {
    'JPG': 'JPEG',
}


class TransformError(RuntimeError):
    """Raised when an image or a version spec cannot be processed."""


def normalize_format(name: Optional[str]) -> str:
    if not name:
        return DEFAULT_FORMAT
    name = FORMAT_ALIASES.get(name.upper(), name.upper())
    if name not in FORMAT_EXTENSIONS:
        raise TransformError(f"Unsupported output format: {name}")
    return name


def _positive_int(spec: Dict[str, Any], field: str) -> Optional[int]:
    value = spec.get(field)
    if value is None:
        return None
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise TransformError(f"Version field '{field}' must be a positive integer, got {value!r}")
    return value


def parse_version(spec: Any, require_both: bool) -> Dict[str, Any]:
    """
    Read one version spec.

    Args:
        spec: Mapping with width/height/quality/format/suffix
        require_both: True when the engine needs an exact box (fill)

    Returns:
        Normalized dict with all five keys present
    """
    if not isinstance(spec, dict):
        raise TransformError(f"Version spec must be an object, got {type(spec).__name__}")

    width = _positive_int(spec, 'width')
    height = _positive_int(spec, 'height')
    if require_both and (width is None or height is None):
        raise TransformError("Version spec needs both 'width' and 'height'")
    if width is None and height is None:
        raise TransformError("Version spec needs 'width' or 'height'")

    quality = _positive_int(spec, 'quality') or DEFAULT_QUALITY
    if quality > 100:
        raise TransformError(f"Version quality must be 1-100, got {quality}")

    suffix = spec.get('suffix')
    if suffix is None:
        suffix = str(width if width is not None else height)
    elif not isinstance(suffix, str) or not suffix or '/' in suffix:
        raise TransformError(f"Invalid version suffix: {suffix!r}")

    return {
        'width': width,
        'height': height,
        'quality': quality,
        'format': spec.get('format'),
        'suffix': suffix,
    }


def version_base_name(file_name: str, size: Tuple[int, int]) -> str:
    """Shared name stem of every version derived from one source image"""
    stem = os.path.splitext(file_name)[0]
    width, height = size
    return f"{stem}_aspR_{width / height:.3f}_w{width}_h{height}_e"


def fit_image(image: Image.Image, width: Optional[int], height: Optional[int]) -> Image.Image:
    """Scale down to fit inside width x height, keeping aspect ratio. Never upscales."""
    resized = image.copy()
    resized.thumbnail(
        (width or image.width, height or image.height),
        Image.Resampling.LANCZOS,
    )
    return resized


def fill_image(image: Image.Image, width: int, height: int) -> Image.Image:
    """Scale and centre-crop to exactly width x height."""
    return ImageOps.fit(image, (width, height), method=Image.Resampling.LANCZOS)


def save_image(image: Image.Image, path: str, image_format: str, quality: int) -> None:
    if image_format in OPAQUE_FORMATS and image.mode != 'RGB':
        image = image.convert('RGB')

    options = {}
    if image_format in ('JPEG', 'WEBP'):
        options['quality'] = quality
    if image_format in ('JPEG', 'PNG'):
        options['optimize'] = True

    image.save(path, format=image_format, **options)


def _write(image: Image.Image, output_dir: str, base: str, suffix: str,
           image_format: str, quality: int) -> str:
    name = f"{base}{suffix}.{FORMAT_EXTENSIONS[image_format]}"
    save_image(image, os.path.join(output_dir, name), image_format, quality)
    return name


def process_image(
    input_path: str,
    output_dir: str,
    versions: List[Dict[str, Any]],
    resize: Callable[[Image.Image, Dict[str, Any]], Image.Image],
) -> List[str]:
    """
    Write the primary version and every requested version of one image.

    Returns:
        Derived file names, primary first
    """
    file_name = os.path.basename(input_path)

    try:
        with Image.open(input_path) as opened:
            source_format = opened.format
            image = ImageOps.exif_transpose(opened)
            image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise TransformError(f"Could not read image {file_name}: {e}") from e

    base = version_base_name(file_name, image.size)
    primary_format = normalize_format(source_format if source_format in FORMAT_EXTENSIONS else None)

    derived = [_write(image, output_dir, base, '', primary_format, DEFAULT_QUALITY)]
    seen = set()

    for version in versions:
        if version['suffix'] in seen:
            raise TransformError(f"Duplicate version suffix: {version['suffix']}")
        seen.add(version['suffix'])

        image_format = normalize_format(version['format']) if version['format'] else primary_format
        resized = resize(image, version)
        derived.append(
            _write(resized, output_dir, base, version['suffix'], image_format, version['quality'])
        )

    print(f"{LOG_PREFIX}: {file_name} -> {len(derived)} version(s)")
    return derived


def _run(input_dir: str, output_dir: str, versions: Optional[List[Any]],
         require_both: bool, resize) -> ProcessingManifest:
    parsed = [parse_version(spec, require_both) for spec in (versions or [])]
    manifest = {}

    for file_name in sorted(os.listdir(input_dir)):
        input_path = os.path.join(input_dir, file_name)
        if not os.path.isfile(input_path):
            continue
        try:
            manifest[file_name] = process_image(input_path, output_dir, parsed, resize)
        except OSError as e:
            raise TransformError(f"Could not write versions of {file_name}: {e}") from e

    return manifest


def fit_versions(input_dir: str, output_dir: str,
                 versions: Optional[List[Any]] = None) -> ProcessingManifest:
    """Versions scaled to fit a bounding box, aspect ratio preserved"""
    return _run(input_dir, output_dir, versions, False,
                lambda image, v: fit_image(image, v['width'], v['height']))


def fill_versions(input_dir: str, output_dir: str,
                  versions: Optional[List[Any]] = None) -> ProcessingManifest:
    """Versions cropped to exactly the requested box"""
    return _run(input_dir, output_dir, versions, True,
                lambda image, v: fill_image(image, v['width'], v['height']))


ENGINES: Dict[ProcessingMode, Callable[..., ProcessingManifest]] = {
    ProcessingMode.FIT: fit_versions,
    ProcessingMode.FILL: fill_versions,
}
