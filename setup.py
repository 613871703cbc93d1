#!/usr/bin/env python
from setuptools import setup
import os


def get_version():
    curdir = os.path.dirname(__file__)
    filename = os.path.join(curdir, 'src', 'svg2raster', 'version.py')
    with open(filename, 'rb') as fp:
        return fp.read().decode('utf8').split('=')[1].strip(" \n'")


def readme():
    with open('README.rst') as f:
        return f.read()


setup(
    name='svg2raster',
    version=get_version(),
    description='Render SVG to PNG, JPEG or WebP with a headless browser',
    long_description=readme(),
    classifiers=[
        'Development Status :: 3 - Alpha',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Multimedia :: Graphics',
        'Topic :: Multimedia :: Graphics :: Graphics Conversion',
    ],
    keywords='svg png jpeg webp headless browser playwright',
    license='MIT License',
    package_dir={'': 'src'},
    packages=[
        'svg2raster',
    ],
    python_requires='>=3.10',
    install_requires=[
        'pillow',
        'playwright',
        'resvg-py',
        'fastapi',
        'starlette>=0.40',
        'python-multipart',
        'uvicorn',
        'httpx',
        'psutil',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    include_package_data=True,
    entry_points={
        'console_scripts': [
            'svg2raster=svg2raster.__main__:main',
            'svg2raster-server=svg2raster.service:main',
        ]
    },
)
