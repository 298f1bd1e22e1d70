from .pixel_image import INTERPOLATIONS, ImageView, PixelImage
