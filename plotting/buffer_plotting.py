import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap

from imaging import PixelImage
from rasterizing import CorrespondenceBuffer


def plot_correspondence(buffer: CorrespondenceBuffer, title="Correspondence", figsize=(14, 6)):
    """
    Plots the triangle-id map and the depth map of a correspondence buffer side by side.

    Parameters
    ----------
    buffer : CorrespondenceBuffer
        Output of the rasterizer.

    title : str, optional
        Figure title. Default is "Correspondence".

    figsize : tuple, optional
        Figure size as (width, height) in inches. Default is (14, 6).

    Returns
    -------
    fig : matplotlib.figure.Figure
        The figure containing the plot.

    axes : tuple of matplotlib.axes.Axes
        The triangle-id axes and the depth axes.
    """
    fig, (ax_ids, ax_depth) = plt.subplots(1, 2, figsize=figsize)
    covered = buffer.coverage()

    # Cycle tab20 over triangle ids so neighbouring triangles are distinguishable
    ids = np.ma.masked_where(~covered, buffer.triangle_ids % 20)
    tab20 = ListedColormap(plt.get_cmap('tab20').colors)
    ax_ids.imshow(ids, cmap=tab20, vmin=0, vmax=19, interpolation='nearest')
    ax_ids.set_title(f"Triangle ids ({np.unique(buffer.triangle_ids[covered]).size} visible)")

    depth = np.ma.masked_where(~covered, buffer.depth)
    depth_plot = ax_depth.imshow(depth, cmap='viridis_r', interpolation='nearest')
    fig.colorbar(depth_plot, ax=ax_depth, label="depth (nearer is brighter)")
    ax_depth.set_title("Depth")

    for ax in (ax_ids, ax_depth):
        ax.set_xlabel("x")
        ax.set_ylabel("y")
    fig.suptitle(title)
    return fig, (ax_ids, ax_depth)


def plot_image(image: PixelImage, title="Rendered Image", figsize=(8, 8), ax=None):
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.figure

    data = np.clip(image.data, 0.0, 1.0)
    if image.channels == 1:
        ax.imshow(data if data.ndim == 2 else data[:, :, 0], cmap='gray', vmin=0.0, vmax=1.0, interpolation='nearest')
    else:
        ax.imshow(data, interpolation='nearest')
    ax.set_title(title)
    ax.set_axis_off()
    return fig, ax
