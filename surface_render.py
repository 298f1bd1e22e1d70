import argparse
import os
import sys
import trimesh
import matplotlib.pyplot as plt
import numpy as np

from data_types import TriangleMesh
from imaging import PixelImage
from plotting import plot_correspondence, plot_image
from rasterizing import render_correspondence, render_correspondence_parallel
from rendering import lambert_shader, orthographic_projection, rotation_matrix, shade_correspondence
from surface import ConstantProperty, TextureMappedProperty, VertexProperty, triangle_normal_property, vertex_normal_property


DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512
BASE_COLOR = (0.8, 0.8, 0.8)
BACKGROUND_COLOR = (0.0, 0.0, 0.0)
LIGHT_DIRECTION = (0.3, 0.5, 1.0)
AMBIENT_LIGHT = 0.2


def load_mesh_cli():
    """Parse command-line arguments and load a mesh file."""
    parser = argparse.ArgumentParser(description='Render a triangle mesh to a PNG image.')
    parser.add_argument('load_filepath', type=str, help='Path to the mesh file to render (any format trimesh reads)')
    parser.add_argument('save_filepath', type=str, help='Path of the PNG file to write')
    parser.add_argument('--width', type=int, default=DEFAULT_WIDTH, help='Image width in pixels')
    parser.add_argument('--height', type=int, default=DEFAULT_HEIGHT, help='Image height in pixels')
    parser.add_argument('--shading', choices=['flat', 'smooth'], default='smooth', help='Per-triangle or interpolated normals')
    parser.add_argument('--yaw', type=float, default=0.0, help='Rotation about the vertical axis, in degrees')
    parser.add_argument('--pitch', type=float, default=0.0, help='Rotation about the horizontal axis, in degrees')
    parser.add_argument('--workers', type=int, default=1, help='Rasterizer threads')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output with visualizations')

    args = parser.parse_args()

    if not args.save_filepath.lower().endswith('.png'):
        print(f"Error: The output file must have a .png extension. Got: {args.save_filepath}")
        sys.exit(1)

    if not os.path.isfile(args.load_filepath):
        print(f"Error: The file {args.load_filepath} does not exist.")
        sys.exit(1)

    save_directory = os.path.dirname(os.path.abspath(args.save_filepath))
    if not os.path.isdir(save_directory):
        print(f"Error: The directory {save_directory} does not exist.")
        sys.exit(1)

    if args.width <= 0 or args.height <= 0 or args.workers <= 0:
        print(f"Error: width, height and workers must be positive. Got: {args.width}, {args.height}, {args.workers}")
        sys.exit(1)

    try:
        mesh = trimesh.load(args.load_filepath, force='mesh')
        return mesh, args

    except Exception as e:
        print(f"Error loading the mesh file: {e}")
        sys.exit(1)


def color_property(source: trimesh.Trimesh, mesh: TriangleMesh):
    """Texture if the file has one, else vertex colors, else a constant base color."""
    visual = source.visual
    if visual.kind == 'texture' and getattr(visual, 'uv', None) is not None:
        material = visual.material
        texture = getattr(material, 'image', None) or getattr(material, 'baseColorTexture', None)
        if texture is not None:
            image = PixelImage.from_pil(texture.convert('RGB'))
            return TextureMappedProperty(mesh, np.asarray(visual.uv), image)
        print("Warning: mesh has UV coordinates but no texture image, using base color")
    elif visual.kind == 'vertex':
        return VertexProperty(mesh, np.asarray(visual.vertex_colors)[:, :3] / 255.0)
    return ConstantProperty(mesh, np.array(BASE_COLOR))


def main():
    source, args = load_mesh_cli()
    mesh = TriangleMesh.from_trimesh(source)

    n_degenerate = int(np.sum(mesh.triangle_areas() <= 0.0))
    if n_degenerate > 0:
        print(f"Warning: {n_degenerate} of {mesh.num_triangles} triangles have zero area and will not be drawn")

    center = mesh.vertices.mean(axis=0)
    pose = rotation_matrix([1.0, 0.0, 0.0], np.radians(args.pitch)) @ rotation_matrix([0.0, 1.0, 0.0], np.radians(args.yaw))
    posed = mesh.rotate(pose, center=center)

    project = orthographic_projection(posed.vertices.min(axis=0), posed.vertices.max(axis=0), args.width, args.height)
    if args.workers == 1:
        buffer = render_correspondence(posed, project, args.width, args.height, show_progress=args.verbose)
    else:
        buffer = render_correspondence_parallel(posed, project, args.width, args.height, workers=args.workers)

    normals = triangle_normal_property(posed) if args.shading == 'flat' else vertex_normal_property(posed)
    properties = {"color": color_property(source, mesh), "normal": normals}
    image = shade_correspondence(buffer, properties, lambert_shader(LIGHT_DIRECTION, AMBIENT_LIGHT), BACKGROUND_COLOR)
    image.to_pil().save(args.save_filepath)

    covered = int(buffer.coverage().sum())
    print(f"Rendered {args.width}x{args.height} image to {args.save_filepath} ({covered} pixels covered)")

    if args.verbose:
        plot_correspondence(buffer, title=os.path.basename(args.load_filepath))
        plot_image(image, title=f"{args.shading} shading")
        plt.tight_layout()
        plt.show()


if __name__ == "__main__":
    main()
