"""
Thumbnail generation using Pillow
"""
import io
from typing import Any, Dict
from PIL import Image, ImageOps, UnidentifiedImageError
from ..constants import ImageConstants
from ..exceptions import ValidationError
from ..logger import worker_logger as logger


class ImageProcessor:
    """
    Resizes originals into thumbnails that fit a square bounding box,
    preserving aspect ratio
    """

    def __init__(self, max_dimension: int = ImageConstants.THUMBNAIL_MAX_DIMENSION):
        self.max_dimension = max_dimension
        self.output_quality = ImageConstants.THUMBNAIL_QUALITY

    def create_thumbnail(self, image_data: bytes, image_type: str) -> Dict[str, Any]:
        """
        Build a thumbnail for an original image

        Args:
            image_data: Raw bytes of the original
            image_type: Extension-derived type ('jpg', 'jpeg' or 'png')

        Returns:
            Dict with 'data' (thumbnail bytes), 'content_type', 'original_size'
            and 'thumbnail_size'

        Raises:
            ValidationError: If the type is unsupported or the bytes are not an image
        """
        if image_type not in ImageConstants.SUPPORTED_TYPES:
            raise ValidationError(f'Unsupported image type: {image_type}', field='key')

        pil_format, content_type = ImageConstants.SUPPORTED_TYPES[image_type]
        image = self._load_image(image_data)
        original_size = image.size

        # Honour EXIF orientation before scaling
        image = ImageOps.exif_transpose(image)
        scale = min(self.max_dimension / image.width, self.max_dimension / image.height)
        if scale < 1:
            width = max(1, int(image.width * scale))
            height = max(1, int(image.height * scale))
            image = image.resize((width, height), Image.Resampling.LANCZOS)

        if pil_format == 'JPEG' and image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')

        output_buffer = io.BytesIO()
        save_kwargs = {'format': pil_format}
        if pil_format == 'JPEG':
            save_kwargs.update(quality=self.output_quality, optimize=True)
        image.save(output_buffer, **save_kwargs)

        logger.debug("Thumbnail created",
                     original_size=original_size,
                     thumbnail_size=image.size,
                     format=pil_format)

        return {
            'data': output_buffer.getvalue(),
            'content_type': content_type,
            'original_size': original_size,
            'thumbnail_size': image.size
        }

    def _load_image(self, image_data: bytes) -> Image.Image:
        try:
            image = Image.open(io.BytesIO(image_data))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError(f'Invalid image data: {e}', field='content')
        return image


# Global image processor instance
image_processor = ImageProcessor()
