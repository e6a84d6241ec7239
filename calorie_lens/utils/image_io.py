from io import BytesIO

from PIL import Image, UnidentifiedImageError

from calorie_lens.core.errors import image_unprocessable


def load_image_from_bytes(image_bytes: bytes, max_bytes: int) -> Image.Image:
    """Decode an uploaded photo into an RGB image.

    Every rejection is the same user-facing 'cannot process image' error; the code
    tells an empty upload and an oversized one apart from a corrupt file.
    """
    if not image_bytes:
        raise image_unprocessable('MISSING_IMAGE', status_code=400)
    if len(image_bytes) > max_bytes:
        raise image_unprocessable('IMAGE_TOO_LARGE', status_code=413, details={'max_bytes': max_bytes})

    try:
        with Image.open(BytesIO(image_bytes)) as opened:
            opened.load()
            return opened.convert('RGB')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise image_unprocessable() from exc
