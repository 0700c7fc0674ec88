import io
import logging

from PIL import Image

logger = logging.getLogger(__name__)

# Covers and photos are stored as JPEG at this quality
JPEG_QUALITY = 80

_DECODE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


class ImageProcessor:
    """Service for turning stored image bytes into Pillow images and back."""

    def load_image(self, image_data: bytes | None) -> Image.Image | None:
        """
        Decode image bytes.

        Returns None for missing or unreadable data so a single broken image
        never takes down the page or document it belongs to.
        """
        if not image_data:
            return None

        try:
            image = Image.open(io.BytesIO(image_data))
            image.load()
        except _DECODE_ERRORS as e:
            logger.warning("Could not decode image (%d bytes): %s", len(image_data), e)
            return None

        return image

    def to_jpeg(self, image_data: bytes, quality: int = JPEG_QUALITY) -> bytes:
        """
        Re-encode image bytes as JPEG.

        Raises:
            ValueError: If the bytes are not a readable image.
        """
        image = self.load_image(image_data)
        if image is None:
            raise ValueError("Unreadable image data")
        return self.encode_jpeg(image, quality)

    def encode_jpeg(self, image: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
        # JPEG has no alpha channel
        if image.mode != "RGB":
            image = image.convert("RGB")
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality)
        return buffer.getvalue()

    def encode_png(self, image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()


image_processor = ImageProcessor()
