from .buffer_plotting import plot_correspondence, plot_image
