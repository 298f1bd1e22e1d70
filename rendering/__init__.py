from .pipeline import render_image, shade_correspondence
from .projection import orthographic_projection, perspective_projection, rotation_matrix, viewport_projection
from .shading import color_shader, lambert_shader, normal_shader
