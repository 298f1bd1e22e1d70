from setuptools import setup, find_packages

setup(
    name="surface-raster",
    version="0.1.0",
    description="Triangle mesh rasterization with per-pixel surface correspondence and surface property evaluation",
    author="",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["surface_render"],
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "trimesh",
        "matplotlib",
        "tqdm",
        "pillow",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "surface-render=surface_render:main",
        ],
    },
)
